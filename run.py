import argparse
import uvicorn
from kinship.core.config import settings

def parse_args():
    parser = argparse.ArgumentParser(description="Run the Kinship API server")
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000)")
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart on code changes; always on when DEBUG is set",
    )
    parser.add_argument(
        "--log-level",
        default="debug" if settings.DEBUG else "info",
        choices=["critical", "error", "warning", "info", "debug"],
        help="uvicorn log level",
    )
    return parser.parse_args()

def main():
    args = parse_args()
    use_reload = args.reload or settings.DEBUG

    if settings.DEBUG:
        print(f"Starting Kinship API in {settings.ENVIRONMENT} mode (reload {'on' if use_reload else 'off'})")
        print(f"Docs: http://{args.host}:{args.port}/docs")

    uvicorn.run(
        "kinship.main:app",
        host=args.host,
        port=args.port,
        reload=use_reload,
        log_level=args.log_level,
    )

if __name__ == "__main__":
    main()
