import sys
from pathlib import Path
from dotenv import load_dotenv

project_root = Path(__file__).parent
dotenv_path = project_root / ".env"
load_dotenv(dotenv_path=dotenv_path, override=True)

# Imported after load_dotenv so settings and model providers see the .env values
from loan_analyst.config.settings import settings  # noqa: E402
from loan_analyst.utils.logger import setup_logger  # noqa: E402


if __name__ == "__main__":
    setup_logger(None, settings.log_level)
    mode = sys.argv[1] if len(sys.argv) > 1 else "mcp"

    if mode == "http":
        import uvicorn

        uvicorn.run(
            "loan_analyst.api:app", host=settings.http_host, port=settings.http_port
        )
    elif mode == "mcp":
        import asyncio

        from loan_analyst.server import main

        asyncio.run(main())
    else:
        sys.exit(f"Unknown mode {mode!r}: use 'mcp' or 'http'")
