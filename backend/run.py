import logging
import signal
import threading

from werkzeug.serving import make_server

from kickbot import create_app

app = create_app()


def serve(flask_app):
    """Serve until SIGINT/SIGTERM, then stop HTTP and drain pending formations."""
    flask_app.logger.setLevel(logging.INFO)
    port = int(flask_app.config.get('PORT', 4000))
    server = make_server('0.0.0.0', port, flask_app, threaded=True)
    stop = threading.Event()

    def _on_signal(signum, frame):
        flask_app.logger.info(f"Shutdown signal ({signal.Signals(signum).name}) received, shutting down gracefully...")
        stop.set()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)

    worker = threading.Thread(target=server.serve_forever, name='kickbot-http', daemon=True)
    worker.start()
    flask_app.logger.info(f"Server running on port {port}")
    stop.wait()

    server.shutdown()
    flask_app.logger.info("HTTP server successfully shut down")
    drained = flask_app.extensions['coordinator'].shutdown(float(flask_app.config.get('SHUTDOWN_GRACE_SEC', 10)))
    flask_app.logger.info(f"Formation coordinator shut down ({drained} announcement(s) removed)")


if __name__ == '__main__':
    serve(app)
