import pytest
from flask import Blueprint, request

from relic_flask import ConfigurationError, NewRelic
from relic_flask.extension import EXTENSION_KEY
from relic_flask.hooks import ENVIRON_KEY


def configure(app, **config):
    app.config["NEWRELIC"] = config

    api = Blueprint("Api", __name__, url_prefix="/api")

    @api.route("/users/<action>", endpoint="Users")
    def users(action):
        return request.environ.get("test.application", "")

    app.register_blueprint(api)

    @app.route("/", endpoint="Homepage", defaults={"action": "default"})
    def homepage(action):
        return request.environ.get("test.application", "")

    @app.route("/boom", endpoint="Boom")
    def boom():
        raise RuntimeError("boom")

    return app


def test_routes_are_attributed_to_applications(app, client):
    configure(app, appName={"Api:*": "BackendApp", "*": "WebApp"}, license="key")
    NewRelic(app, client=client)

    with app.test_client() as test_client:
        assert test_client.get("/api/users/list").data == b"BackendApp"
        assert ("name_transaction", "Api:Users:list") in client.calls
        assert test_client.get("/").data == b"WebApp"
        assert ("name_transaction", "Homepage:default") in client.calls

    assert client.wrapped == ["BackendApp", "WebApp"]
    assert client.calls[0] == ("setup", "WebApp", "key")


def test_wrapped_app_is_created_once_per_application(app, client):
    configure(app, appName={"Api:*": "BackendApp", "*": "WebApp"})
    NewRelic(app, client=client)

    with app.test_client() as test_client:
        for _ in range(3):
            test_client.get("/api/users/list")
            test_client.get("/")
            test_client.get("/missing")

    assert client.wrapped == ["BackendApp", "WebApp"]


def test_unmatched_url_uses_default_application(app, client):
    configure(app, appName={"Api:*": "BackendApp", "*": "WebApp"})
    NewRelic(app, client=client)

    @app.errorhandler(404)
    def not_found(error):
        return request.environ.get("test.application", ""), 404

    with app.test_client() as test_client:
        response = test_client.get("/missing")

    assert response.status_code == 404
    assert response.data == b"WebApp"


def test_scalar_app_name(app, client):
    configure(app, appName="WebApp")
    NewRelic(app, client=client)

    with app.test_client() as test_client:
        assert test_client.get("/api/users/list").data == b"WebApp"


def test_unhandled_errors_are_reported(app, client):
    configure(app, appName="WebApp")
    NewRelic(app, client=client)

    with app.test_client() as test_client:
        with pytest.raises(RuntimeError):
            test_client.get("/boom")

    (exc_info, _), = client.errors
    assert exc_info[0] is RuntimeError
    assert str(exc_info[1]) == "boom"


def test_missing_default_fails_at_startup(app, client):
    configure(app, appName={"Admin:*": "App1"})
    with pytest.raises(ConfigurationError):
        NewRelic(app, client=client)
    assert client.calls == []


@pytest.mark.parametrize("loaded, enabled, message", [
    (False, True, "not loaded"),
    (True, False, "not enabled"),
])
def test_unavailable_agent_is_fatal(app, make_client, loaded, enabled, message):
    configure(app, appName="WebApp")
    with pytest.raises(ConfigurationError, match=message):
        NewRelic(app, client=make_client(loaded=loaded, enabled=enabled))


def test_unavailable_agent_is_skipped_when_asked(app, make_client):
    client = make_client(loaded=False)
    configure(app, appName="WebApp", rum={"enabled": True})
    wsgi_app = app.wsgi_app
    NewRelic(app, skip_if_disabled=True, client=client)

    with app.test_client() as test_client:
        test_client.get("/")

    assert app.wsgi_app == wsgi_app
    assert client.calls == []
    assert client.options == {}
    assert app.extensions[EXTENSION_KEY].enabled is False
    assert app.jinja_env.globals["newrelic_header"]() == ""


def test_disabled_by_configuration(app, client):
    configure(app, appName="WebApp", enabled=False)
    NewRelic(app, client=client)

    with app.test_client() as test_client:
        test_client.get("/")

    assert client.calls == []
    assert client.options == {}


def test_init_app_factory_pattern(app, client):
    ext = NewRelic(client=client)
    configure(app, appName="WebApp")
    state = ext.init_app(app)

    assert app.extensions[EXTENSION_KEY] is state
    assert state.bootstrap.done


def test_custom_and_captured_parameters(app, client):
    configure(
        app,
        appName="WebApp",
        custom={"parameters": {"team": "web"}},
        parameters={"capture": True, "ignored": ["password"]},
    )
    NewRelic(app, client=client)

    with app.test_client() as test_client:
        test_client.get("/api/users/list?page=2&password=secret")

    assert client.attributes["team"] == "web"
    assert client.attributes["application"] == "WebApp"
    assert client.attributes["request.parameters.page"] == "2"
    assert client.attributes["request.parameters.action"] == "list"
    assert "request.parameters.password" not in client.attributes


def test_resolution_is_recorded_in_environ(app, client):
    configure(app, appName={"Api:*": "BackendApp", "*": "WebApp"})
    NewRelic(app, client=client)

    @app.route("/where", endpoint="Where")
    def where():
        return request.environ[ENVIRON_KEY]

    with app.test_client() as test_client:
        assert test_client.get("/where").data == b"WebApp"


def test_logged_unhandled_error_is_reported_once(app, client):
    app.config["TESTING"] = False
    configure(app, appName="WebApp")
    NewRelic(app, client=client)

    with app.test_client() as test_client:
        assert test_client.get("/boom").status_code == 500

    assert len(client.errors) == 1
    (exc_info, attributes), = client.errors
    assert exc_info[0] is RuntimeError
    assert attributes is None


def test_repeated_init_forwards_each_log_record_once(app, client):
    import logging

    configure(app, appName="WebApp")
    ext = NewRelic(client=client)
    ext.init_app(app)
    ext.init_app(app)

    logging.getLogger("tests.extension.repeated").error("once")

    assert len(client.errors) == 1
