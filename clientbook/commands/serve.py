import os

import uvicorn

from .base import BaseCommand


class ServeCommand(BaseCommand):
    name = "serve"
    help = "Run the HTTP API"

    def add_arguments(self):
        self.parser.add_argument("--host", default=os.getenv("UVICORN_HOST", "127.0.0.1"))
        self.parser.add_argument("--port", type=int, default=int(os.getenv("UVICORN_PORT", "8000")))
        self.parser.add_argument("--reload", action="store_true", help="Restart on code changes")

    def run(self, args):
        uvicorn.run(
            "clientbook.main:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level="info",
            server_header=False,
            proxy_headers=True,
            forwarded_allow_ips="*",
        )
