"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from flask import Flask

from insightapi.core.config import CONFIG_MAP, BaseConfig, get_config, validate_config
from insightapi.core.logger import configure_logging, init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config class/object, an environment name such as
        ``"testing"``, or ``None`` to follow ``APP_ENV``.
    :raises RuntimeError: If the resulting settings cannot run the auth flow.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    if config is None:
        config = get_config()
    elif isinstance(config, str):
        config = CONFIG_MAP[config.strip().lower()]
    app.config.from_object(config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    validate_config(app.config)
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Proxy headers if running behind a reverse proxy (optional module)
    from insightapi.core import proxy

    proxy.init_app(app)

    from insightapi.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from insightapi.core import cors

    cors.init_app(app)

    from insightapi.api import init_app as init_api

    init_api(app)

    from insightapi.core import errors

    errors.init_app(app)

    from insightapi import cli as app_cli

    app_cli.init_app(app)

    return app
