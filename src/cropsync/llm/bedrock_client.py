import json
from threading import Lock

import boto3
from botocore.config import Config

from cropsync.config import AWS_REGION, LLM_MODEL, LLM_MAX_TOKENS, LLM_TIMEOUT_SECONDS
from cropsync.utils.logger import logger

# Lazy initialization, shared by prefetch threads
_bedrock = None
_bedrock_lock = Lock()


def _get_bedrock_client():
    """Lazily initialize Bedrock client with a bounded read timeout."""
    global _bedrock
    with _bedrock_lock:
        if _bedrock is None:
            logger.info(f"Initializing Bedrock client in region: {AWS_REGION}")
            _bedrock = boto3.client(
                "bedrock-runtime",
                region_name=AWS_REGION,
                config=Config(
                    connect_timeout=10,
                    read_timeout=LLM_TIMEOUT_SECONDS,
                    retries={"max_attempts": 1},
                ),
            )
    return _bedrock


def call_llm(prompt: str) -> str:
    """
    Generate text for a prompt.

    Raises:
        botocore ClientError / BotoCoreError (including read timeouts) on failure
    """
    logger.info(f"Calling LLM model: {LLM_MODEL}")

    body = json.dumps({
        "anthropic_version": "bedrock-2023-05-31",
        "max_tokens": LLM_MAX_TOKENS,
        "messages": [
            {
                "role": "user",
                "content": prompt
            }
        ]
    })

    try:
        bedrock = _get_bedrock_client()
        response = bedrock.invoke_model(
            modelId=LLM_MODEL,
            contentType="application/json",
            accept="application/json",
            body=body
        )

        result = json.loads(response["body"].read().decode())
        return "".join(block.get("text", "") for block in result.get("content", []))
    except Exception as e:
        logger.error(f"Bedrock LLM error: {e}")
        raise
