from flask import Flask
from config import Config


def create_app(config_class=Config, announcer=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    if announcer is None:
        from kickbot.announcer import SlackAnnouncer
        announcer = SlackAnnouncer(
            token=flask_app.config['SLACK_BOT_TOKEN'],
            api_url=flask_app.config.get('SLACK_API_URL', 'https://slack.com/api'),
            timeout=float(flask_app.config.get('SLACK_HTTP_TIMEOUT_SEC', 10)),
        )
        if not flask_app.config['SLACK_BOT_TOKEN']:
            flask_app.logger.warning("KICKBOT_TOKEN is not set; Slack calls will be rejected")

    # One coordinator per app; handlers reach it through app.extensions
    from kickbot.services.formations import FormationCoordinator
    flask_app.extensions['coordinator'] = FormationCoordinator(
        announcer,
        timeout=float(flask_app.config.get('FORMATION_TIMEOUT_SEC', 1800)),
        logger=flask_app.logger,
    )

    from kickbot.main import main
    flask_app.register_blueprint(main)

    from kickbot.api.slack import slack
    flask_app.register_blueprint(slack)

    return flask_app
