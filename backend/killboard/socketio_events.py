from flask import current_app, request
from flask_socketio import emit
from killboard import socketio
from killboard.services.dashboard import get_dashboard

NAMESPACE = '/ws'


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _deliver(sub, namespace):
    for note in sub.drain():
        socketio.emit(note.kind, note.payload, to=sub.sub_id, namespace=namespace)


def _pump(app, sub, namespace):
    """Drain one viewer's buffer onto its socket until it unsubscribes."""
    while not sub.closed:
        if sub.wait(timeout=5.0) and not sub.closed:
            try:
                _deliver(sub, namespace)
            except Exception:
                app.logger.exception(f"[ws-pump] sid={sub.sub_id}")


def handle_connect(auth=None):
    sid = _get_sid()
    namespace = request.namespace or NAMESPACE
    app = current_app._get_current_object()
    channel = get_dashboard().channel
    if app.config.get('BROADCAST_SYNC'):
        channel.subscribe(sid, on_ready=lambda s: _deliver(s, namespace))
    else:
        sub = channel.subscribe(sid)
        socketio.start_background_task(_pump, app, sub, namespace)
    app.logger.info(f"[ws-connect] sid={sid} viewers={channel.subscriber_count}")


def handle_disconnect(*args):
    sid = _get_sid()
    channel = get_dashboard().channel
    channel.unsubscribe(sid)
    current_app.logger.info(f"[ws-disconnect] sid={sid} viewers={channel.subscriber_count}")


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)

    if testing:
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('disconnect', handle_disconnect, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
