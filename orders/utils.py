from rest_framework.response import Response


def format_order_ref(order_id):
    # Short reference shown on tickets and the kitchen screen.
    return f"#{str(order_id).replace('-', '')[-4:].upper()}"


def error_response(message, status_code, extra=None):
    payload = {"error": message, "detail": message}
    if extra:
        payload.update(extra)
    return Response(payload, status=status_code)


def ordering_error_response(exc):
    return error_response(str(exc), exc.status_code, {"code": exc.code})


def guest_session_key(request, create=False):
    """Session id of an anonymous caller: the X-Session-Id header, else the cookie session."""
    key = (request.headers.get("X-Session-Id") or "").strip()
    if key:
        return key[:64]

    session = request.session
    if session.session_key is None and create:
        session.save()
    return session.session_key
