#!/usr/bin/env python3
"""
Flask Application Entry Point
Serves the admin stats API (GET /api/admin/stats)
"""

import os
from videohub import create_app, configure_logging

# Create the Flask application
app = create_app()
configure_logging(app.config.get('LOG_LEVEL', 'INFO'))

if __name__ == '__main__':
    # Get configuration from environment variables
    debug_mode = os.environ.get('FLASK_DEBUG', 'False').lower() == 'true'
    port = int(os.environ.get('PORT', 5000))
    host = os.environ.get('HOST', '127.0.0.1')
    
    print(f"🚀 Starting videohub API...")
    print(f"   Debug mode: {debug_mode}")
    print(f"   URL: http://{host}:{port}/api/admin/stats")
    
    app.run(
        host=host,
        port=port,
        debug=debug_mode,
        threaded=True
    )
