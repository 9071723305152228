from dotenv import load_dotenv
from flasgger import Swagger
from flask import Flask

from tokengate import config
from tokengate.controllers.oauth_controller import oauth_bp
from tokengate.logging_config import configure_logging
from tokengate.models import create_test_data, init_db

load_dotenv()
configure_logging()

app = Flask(__name__)
app.secret_key = config.SECRET_KEY
app.config["MIXED_ERROR_ENVELOPES"] = config.get_env_bool(
    "MIXED_ERROR_ENVELOPES", False
)

app.register_blueprint(oauth_bp)

# Configure Swagger
swagger_config = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec",
            "route": "/apispec.json",
            "rule_filter": lambda rule: True,
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/swagger",
}

swagger_template = {
    "info": {
        "title": "Mock Identity Provider",
        "description": "Token endpoint that emits success and error envelopes "
        "for exercising token response validation.",
        "version": "1.0.0",
    },
    "securityDefinitions": {
        "BasicAuth": {
            "type": "basic",
            "description": "Basic authentication with client_id:client_secret",
        },
    },
    "tags": [
        {"name": "OAuth2", "description": "OAuth2 authorization and token endpoints"},
    ],
}

swagger = Swagger(app, config=swagger_config, template=swagger_template)


# Initialize database on startup
with app.app_context():
    init_db()
    create_test_data()

if __name__ == "__main__":
    app.run(host=config.HOST, debug=config.DEBUG, port=config.PORT)
