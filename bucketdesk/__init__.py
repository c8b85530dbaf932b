"""
Flask application factory.
"""
from flask import Flask
import logging

__version__ = '1.0.0'


def create_app(config_name=None):
    """
    Create and configure Flask application.

    Args:
        config_name: Configuration name ('development', 'production', 'testing')

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    # Load configuration
    from bucketdesk.config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Configure logging
    logging.basicConfig(
        level=logging.INFO if not app.config['DEBUG'] else logging.DEBUG,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # botocore is very chatty at DEBUG and would log request signatures
    logging.getLogger('botocore').setLevel(logging.WARNING)

    # Validate AI configuration (warn if missing, don't fail)
    try:
        from bucketdesk.config import Config
        Config.validate_ai_config()
        app.logger.info(f"Bedrock model: {app.config['BEDROCK_MODEL_ID']} ({app.config['BEDROCK_REGION']})")
    except ValueError as e:
        app.logger.warning(f"AI configuration warning: {e}")
        app.logger.warning("AI endpoints may not work without a configured Bedrock model")

    # Register blueprints
    from bucketdesk.routes import s3_objects, assistant

    app.register_blueprint(s3_objects.bp)
    app.register_blueprint(assistant.bp)

    app.logger.info("All blueprints registered (S3 objects and AI assistant)")

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        return {'error': 'Not found'}, 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return {'error': 'Method not allowed'}, 405

    @app.errorhandler(413)
    def request_too_large(error):
        return {'error': f"Upload exceeds the {app.config['MAX_UPLOAD_SIZE_MB']} MB limit"}, 413

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Internal error: {error}")
        return {'error': 'Internal server error'}, 500

    # Health check endpoint
    @app.route('/health')
    def health_check():
        return {
            'status': 'healthy',
            'app': 'bucketdesk',
            'version': __version__
        }, 200

    app.logger.info(f"Flask app created successfully in {app.config.get('FLASK_ENV', 'development')} mode")

    return app
