#!/usr/bin/env python3
"""
LLM Decision Relay - Main Application Entry Point.

============================================================
SINGLE ENTRYPOINT
============================================================
This is the ONE executable entry point for the workflow.

- Compatible with PM2 process management
- Serves triggers or fires one trigger directly
- Configuration from config file, .env and environment

============================================================
USAGE
============================================================
Direct execution:
    python app.py --mode serve

With a workflow config file:
    python app.py --mode serve --config config.json

With PM2:
    pm2 start app.py --interpreter python --name llm-relay -- --mode serve

============================================================
"""

import sys

from orchestrator.cli import main


if __name__ == "__main__":
    sys.exit(main())
