import argparse
import logging
import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Serve the imageboard search API")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--host", default=os.getenv("APP_HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("APP_PORT", 8000)))
    args = parser.parse_args()

    if args.debug:
        os.environ["IBDL_DEBUG"] = "true"
        print("Debug mode enabled")

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(
        "ibdl.main:app",
        host=args.host,
        port=args.port,
        reload=args.debug,
    )
