from killboard import create_app, socketio
from killboard.services.scheduler import start_background_services

app = create_app()

if __name__ == '__main__':
    if app.config.get('START_BACKGROUND_TASKS'):
        start_background_services(app)
    # Use SocketIO server to enable websockets in dev; the reloader would start the timers twice
    socketio.run(app, debug=True, use_reloader=False, allow_unsafe_werkzeug=True)
