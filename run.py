#!/usr/bin/env python
"""Entry point for running the mock identity provider."""

from waitress import serve

from tokengate import config
from tokengate.logging_config import get_logger
from tokengate.server import app

if __name__ == "__main__":
    get_logger("tokengate.run").info(
        "Starting mock identity provider", host=config.HOST, port=config.PORT
    )
    serve(app, host=config.HOST, port=config.PORT)
