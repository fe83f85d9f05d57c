import logging
import os
import sys

from flask import Flask, jsonify, render_template, request

from config import ScannerConfig
from errors import ConfigError, ScanError
from inventory_api import InventoryClient
from logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_scanner_app(inventory):
    app = Flask(__name__)

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.route("/", methods=["GET", "OPTIONS"])
    def index():
        if request.method == "OPTIONS":
            return "", 200
        logger.info("[Index] %s %s from %s", request.method, request.path, request.remote_addr)
        return render_template("index.html")

    @app.route("/scan", methods=["POST", "OPTIONS"])
    def scan():
        if request.method == "OPTIONS":
            return "", 200

        barcode = (request.form.get("barcode") or "").strip()
        if not barcode:
            logger.info("[Scan] No barcode from %s", request.remote_addr)
            return jsonify({"error": "No barcode provided"}), 400

        logger.info("[Scan] Barcode %s from %s", barcode, request.remote_addr)
        item, error = None, None
        try:
            item = inventory.fetch_item(barcode)
        except ScanError as e:
            logger.warning("[Scan] Lookup failed: %s", e)
            error = str(e)

        html = render_template("result.html", item=item, error=error)
        return html, 200, {"Content-Type": "text/html; charset=utf-8"}

    return app


def main():
    config = ScannerConfig.from_env()
    setup_logging(config.log_level)
    try:
        config.validate()
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(1)

    app = create_scanner_app(InventoryClient(config))

    ssl_context = None
    if os.path.isfile(config.tls_cert) and os.path.isfile(config.tls_key):
        ssl_context = (config.tls_cert, config.tls_key)
        logger.info("Serving HTTPS on :%s, cert: %s, key: %s", config.port, config.tls_cert, config.tls_key)
    else:
        logger.warning(
            "TLS files %s / %s not found, serving plain HTTP; browsers only allow the camera on localhost",
            config.tls_cert, config.tls_key,
        )

    app.run(host="0.0.0.0", port=config.port, debug=config.debug, ssl_context=ssl_context)


if __name__ == "__main__":
    main()
