"""Liveness endpoint so hosting platforms see an open port"""
import logging
import threading

from flask import Flask, Response

logger = logging.getLogger(__name__)

HEALTH_TEXT = "Hello World!"


def create_app() -> Flask:
    app = Flask(__name__)

    @app.route("/")
    def index():
        return Response(HEALTH_TEXT, mimetype="text/plain")

    return app


class HealthServer:
    """Flask health check server running in a background thread"""

    def __init__(self, port: int = 3000, host: str = "0.0.0.0"):
        self.host = host
        self.port = port
        self.app = create_app()
        self._thread = None

    def start(self):
        """Start web server in background thread"""
        def run():
            logging.getLogger("werkzeug").setLevel(logging.WARNING)
            self.app.run(host=self.host, port=self.port, threaded=True, use_reloader=False)

        self._thread = threading.Thread(target=run, name="health-server", daemon=True)
        self._thread.start()
        logger.info(f"🌐 Listening for requests at http://{self.host}:{self.port}")
