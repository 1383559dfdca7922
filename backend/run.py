import os

from initials import create_app, socketio

app = create_app()

if __name__ == '__main__':
    # Socket.IO dev server so the change feed runs over websockets
    socketio.run(app, host=os.environ.get('HOST', '127.0.0.1'), port=int(os.environ.get('PORT', '5000')), debug=True)
