#!/usr/bin/env python3
"""
Flask application for the game review API.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

# Load environment variables from project root
project_root = Path(__file__).parent.parent
load_dotenv(project_root / '.env')


def create_app(orchestrator=None):
    """
    Application factory.

    Args:
        orchestrator: Orchestrator to serve (default: the process-wide one)
    """
    app = Flask(__name__)

    if orchestrator is None:
        from review.orchestrator import get_orchestrator
        orchestrator = get_orchestrator()
    app.config['ORCHESTRATOR'] = orchestrator

    from web import routes
    routes.register_routes(app)

    return app


if __name__ == '__main__':
    app = create_app()
    port = int(os.environ.get('PORT', 5000))
    app.run(host='0.0.0.0', port=port)
