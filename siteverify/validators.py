import ipaddress

TOKEN_FIELD = "g-recaptcha-response"


def extract_token(request) -> str:
    """
    Return the challenge token posted by the reCAPTCHA widget.

    Works with any request-like object exposing a ``form`` mapping
    (Flask / Werkzeug requests included). Missing values come back as "".
    """
    form = getattr(request, "form", None)
    if form is None:
        return ""

    return form.get(TOKEN_FIELD) or ""


def remote_host(remote_addr: str | None) -> str:
    """
    Best-effort host extraction from a remote address.

    - "203.0.113.7:5123"      -> "203.0.113.7"
    - "[2001:db8::1]:443"     -> "2001:db8::1"
    - "203.0.113.7"           -> "203.0.113.7"
    - anything unparseable    -> ""
    """
    if not remote_addr:
        return ""

    addr = remote_addr.strip()

    # -----------------------------
    # Bracketed IPv6 with port
    # -----------------------------
    if addr.startswith("["):
        host, sep, port = addr[1:].partition("]")
        if not sep or (port and not (port.startswith(":") and port[1:].isdigit())):
            return ""
        return host

    # -----------------------------
    # Bare IP literal (v4 or v6)
    # -----------------------------
    if _is_ip(addr):
        return addr

    # -----------------------------
    # host:port
    # -----------------------------
    host, sep, port = addr.rpartition(":")
    if not sep or ":" in host or not port.isdigit():
        return ""

    return host


def _is_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True
