#!/usr/bin/env python3
"""
Local script to run the CropSync Lambda handler without deploying.

Usage:
    python local_test.py Lusaka -15.4067 28.2871
    python local_test.py Lusaka -15.4067 28.2871 --quick
    python local_test.py --details Maize

Before running:
1. Ensure you have AWS credentials configured (Bedrock access):
   aws configure
2. Optionally point the local store somewhere else:
   export LOCAL_STORE_DIR="/tmp/cropsync-local"
"""

import json
import sys
import os

# Set environment variables BEFORE importing cropsync (config is read at import time)
os.environ.setdefault("AWS_REGION", "ap-south-1")
os.environ.setdefault("LLM_MODEL", "anthropic.claude-3-haiku-20240307-v1:0")
os.environ.setdefault("LOCAL_STORE_DIR", "/tmp/cropsync-local")

project_root = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.join(project_root, "src"))


def build_event(args):
    if args[0] == "--details":
        return {"queryStringParameters": {"action": "crop_details", "crop": args[1]}}

    location, latitude, longitude = args[0], args[1], args[2]
    return {
        "queryStringParameters": {
            "action": "recommend",
            "location": location,
            "latitude": latitude,
            "longitude": longitude,
            "quick": "true" if "--quick" in args else "false",
        }
    }


def main():
    args = sys.argv[1:]
    if len(args) < 2 or (args[0] != "--details" and len(args) < 3):
        print("Usage: python local_test.py <location> <latitude> <longitude> [--quick]")
        print("       python local_test.py --details <crop name>")
        print("Example: python local_test.py Lusaka -15.4067 28.2871")
        sys.exit(1)

    event = build_event(args)
    print(f"\n🌱 Event: {json.dumps(event)}\n")
    print("=" * 50)

    from cropsync.handler import lambda_handler
    from cropsync.utils.logger import get_logger

    # Print component logs to the console
    get_logger()

    response = lambda_handler(event, {})

    print(f"✅ Status: {response['statusCode']}")
    print(f"📝 Response:\n{json.dumps(json.loads(response['body']), indent=2, ensure_ascii=False)}")
    return response


if __name__ == "__main__":
    main()
