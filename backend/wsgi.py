# backend/wsgi.py
"""
Entrypoint for the embedded server.

    python wsgi.py              # 127.0.0.1:3131 (HOST / PORT override)
    PORT=0 python wsgi.py       # random free port, printed on startup
    FLASK_APP=wsgi.py flask system init
"""
from werkzeug.serving import make_server

from qrfactory import create_app

app = create_app()


def start_server(port: int | None = None, host: str | None = None):
    """Bind the server; port 0 picks a free port. Returns (server, port)."""
    host = host or app.config["HOST"]
    port = app.config["PORT"] if port is None else port
    server = make_server(host, port, app, threaded=True)
    return server, server.server_port


if __name__ == "__main__":
    server, port = start_server()
    app.logger.info("QR Factory server listening on http://%s:%d", app.config["HOST"], port)
    print(f"QR Factory server listening on http://{app.config['HOST']}:{port}")
    server.serve_forever()
