"""WSGI entry point (``gunicorn ibarangay.wsgi:app --timeout $REQUEST_TIMEOUT_SECONDS``)."""
import os

from ibarangay.app import create_app
from ibarangay.config import config_by_name

app = create_app(config_by_name.get(os.getenv('FLASK_ENV', 'development'), config_by_name['default']))

if __name__ == '__main__':
    app.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=app.config['DEBUG']
    )
