"""
Application entry point.
Run this file to start the Flask development server.
"""
import os

from bucketdesk import create_app

# Create Flask application
app = create_app()

if __name__ == '__main__':
    # Run development server
    app.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', '5700')),
        debug=app.config['DEBUG']
    )
