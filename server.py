# Version: v1.0
"""
Scribe MCP Server
Formats long interview transcripts with an LLM and assembles topic-aware
prompt context from formatted documents and retrieved passages.
"""
from scribe.config import mcp, logger, TRANSCRIPTIONS_DIR, PROMPTS_DIR, DEFAULT_LLM_MODEL
import scribe.tools  # noqa: F401  registers the @mcp.tool() functions


def main() -> None:
    logger.info(
        f"Starting mcp-scribe-rag (transcriptions={TRANSCRIPTIONS_DIR}, "
        f"prompts={PROMPTS_DIR}, model={DEFAULT_LLM_MODEL})"
    )
    mcp.run()


if __name__ == "__main__":
    main()
