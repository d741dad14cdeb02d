import os
import logging

import requests
from dotenv import load_dotenv
from flask import Flask, jsonify, request
from werkzeug.middleware.proxy_fix import ProxyFix

from siteverify.captcha import DEFAULT_TIMEOUT, Recaptcha
from siteverify.errors import InvalidInput, RecaptchaError

# -------------------------------------------------------------------
# CONFIGURATION & CONSTANTS

load_dotenv()
if not os.environ.get("SECRET_KEY"):
    raise RuntimeError("SECRET_KEY not set")

app = Flask(__name__)

app.config.update(
    SESSION_COOKIE_HTTPONLY=True,
    SESSION_COOKIE_SAMESITE="Lax",
    SESSION_COOKIE_SECURE=os.environ.get("ENV") == "production"
)

# Production Proxy Fix (for Nginx/Heroku/Render)
if os.environ.get("ENV") == "production":
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)

app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY")


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# -------------------------------------------------
# CAPTCHA GLOBAL SWITCH
# -------------------------------------------------
app.config["CAPTCHA_ENABLED"] = _env_flag(
    "CAPTCHA_ENABLED", os.environ.get("ENV") == "production"
)

# -------------------------------------------------
# reCAPTCHA Configuration
# -------------------------------------------------
if app.config["CAPTCHA_ENABLED"]:
    app.config["RECAPTCHA_SECRET_KEY"] = os.environ["RECAPTCHA_SECRET_KEY"]
else:
    app.config["RECAPTCHA_SECRET_KEY"] = None

app.config["RECAPTCHA_TIMEOUT"] = float(
    os.environ.get("RECAPTCHA_TIMEOUT", DEFAULT_TIMEOUT)
)

recaptcha = Recaptcha(
    app.config["RECAPTCHA_SECRET_KEY"] or "",
    timeout=app.config["RECAPTCHA_TIMEOUT"],
)

# Outbound client for siteverify calls, injected into every verification
recaptcha_client = requests.Session()

# -------------------------------------------------------------------------
# Logging Configuration
# -------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)

if os.environ.get("ENV") == "production":
    logging.getLogger().setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@app.after_request
def add_security_headers(response):
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin"
    response.headers["Permissions-Policy"] = "geolocation=()"
    return response


# -------------------------------------------------------------------
# ROUTES

@app.route("/health")
def health():
    return jsonify(status="ok", captcha_enabled=app.config["CAPTCHA_ENABLED"])


@app.route("/verify", methods=["POST"])
def verify():
    """
    Check the reCAPTCHA answer posted with the form.

    200 -> verified (or CAPTCHA disabled)
    400 -> no token in the request
    403 -> rejected by Google
    502 -> Google could not be reached or answered garbage
    """
    if not app.config["CAPTCHA_ENABLED"]:
        return jsonify(success=True, skipped=True)

    try:
        result = recaptcha.verify(request, recaptcha_client)
    except InvalidInput as e:
        return jsonify(success=False, error=str(e)), 400
    except RecaptchaError as e:
        logger.warning(
            f"reCAPTCHA verification unavailable ({type(e).__name__}) "
            f"IP={request.remote_addr}: {e}"
        )
        return jsonify(success=False, error=str(e)), 502

    if not result.success:
        logger.warning(
            f"reCAPTCHA rejected IP={request.remote_addr} "
            f"error_codes={list(result.error_codes)}"
        )
        return jsonify(result.to_dict()), 403

    return jsonify(result.to_dict())


if __name__ == "__main__":
    app.run(
        debug=os.environ.get("ENV") != "production",
        port=int(os.environ.get("PORT", 5002))
    )
