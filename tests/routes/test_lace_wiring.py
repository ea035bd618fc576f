"""Tests for the Flask adaptor: wiring, view lookup and HTTP helpers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pytest
from flask import Flask

from lace.components import View
from lace.errors import LaceError, MissingRequiredAttribute, RegistryFrozenError
from lace.rendering import ViewFactory
from lace.startup import EXTENSION_KEY, Lace, LaceState, get_view
from lace.widgets import Input


@dataclass
class Hello(View):
    name: str

    template_file = "hello.html"

    def process_dom(self, dom):
        dom.first("#greeting").append_content(f", {self.name}")


@pytest.fixture
def lace_app(tmp_path):
    (tmp_path / "hello.html").write_text("<h1 id='greeting'>Hello</h1>")
    app = Flask(__name__, template_folder=str(tmp_path))
    app.config["TESTING"] = True

    lace = Lace(views_package="myapp.views", component_handlers={"view-input": Input})
    lace.view()(Hello)
    lace.init_app(app)

    app.add_url_rule("/hello/<name>", endpoint="hello", view_func=lambda name: lace.create("Hello", name=name).http_ok())
    app.add_url_rule("/gone", endpoint="gone", view_func=lambda: lace.create(Hello, name="nobody").http_not_found())
    app.add_url_rule(
        "/todos",
        endpoint="todos",
        methods=["GET", "POST"],
        view_func=lambda: get_view("TodoList", items=["milk", "eggs"]).http_ok({"X-Page": "todos"}),
    )
    app.add_url_rule(
        "/todos/new",
        endpoint="todos_new",
        methods=["POST"],
        view_func=lambda: get_view("TodoList", items=[]).http_created("/todos/1"),
    )
    app.add_url_rule("/broken", endpoint="broken", view_func=lambda: get_view("Author", writer="x").http_ok())
    app.lace = lace  # type: ignore[attr-defined]
    return app


@pytest.fixture
def client(lace_app):
    return lace_app.test_client()


def test_view_renders_template_file_from_app_loader(client):
    resp = client.get("/hello/john")

    assert resp.status_code == 200
    assert resp.mimetype == "text/html"
    assert resp.get_data(as_text=True) == '<h1 id="greeting">Hello, john</h1>'


def test_model_values_are_escaped(client):
    resp = client.get("/hello/a&b")
    assert "Hello, a&amp;b" in resp.get_data(as_text=True)


def test_status_helpers(client):
    resp = client.get("/gone")
    assert resp.status_code == 404
    assert "nobody" in resp.get_data(as_text=True)

    resp = client.post("/todos/new")
    assert resp.status_code == 201
    assert resp.headers["Location"].endswith("/todos/1")


def test_convention_views_and_components(client):
    resp = client.get("/todos")
    body = resp.get_data(as_text=True)

    assert resp.status_code == 200
    assert resp.headers["X-Page"] == "todos"
    assert "<title>Things To Do</title>" in body
    assert "<li>milk</li><li>eggs</li>" in body
    assert '<label for="item">Todo</label>' in body
    assert "view-" not in body


def test_render_errors_propagate(client):
    with pytest.raises(MissingRequiredAttribute):
        client.get("/broken")


def test_extension_is_registered_once(lace_app):
    lace = lace_app.lace
    state = lace_app.extensions[EXTENSION_KEY]
    factory = state.factory

    lace.init_app(lace_app)

    assert isinstance(state, LaceState)
    assert state.extension is lace
    assert lace_app.extensions[EXTENSION_KEY] is state
    assert state.factory is factory
    assert state.registry.frozen
    assert factory.base_dom(Hello) is not None
    assert lace.state(lace_app) is state


def test_registry_is_frozen_after_init(lace_app):
    with pytest.raises(RegistryFrozenError):
        lace_app.extensions[EXTENSION_KEY].registry.register("view-late", Hello)


def test_unknown_view_name(lace_app):
    with lace_app.app_context():
        with pytest.raises(LaceError):
            lace_app.lace.create("NoSuchView")


def test_create_without_an_initialized_app_fails():
    with pytest.raises(LaceError):
        Lace().create(Hello, name="x")

    lace = Lace()
    with Flask(__name__).app_context():
        with pytest.raises(LaceError):
            lace.create(Hello, name="x")


def test_app_config_overrides_prefix_and_handlers():
    app = Flask(__name__)
    app.config["LACE_COMPONENT_PREFIX"] = "UI"
    app.config["LACE_VIEWS_PACKAGE"] = "myapp.views"
    app.config["LACE_COMPONENT_HANDLERS"] = {"ui-field": Input}

    @dataclass
    class Page(View):
        template_source = "<div><ui-badge label='B' /><ui-field id='f' label='F' name='f' /></div>"

    lace = Lace()
    lace.view("Page")(Page)
    lace.init_app(app)

    assert lace.state(app).registry.prefixes() == ["ui"]
    with app.app_context():
        html = get_view("Page").render()
    assert '<b class="badge">B</b>' in html
    assert 'name="f"' in html


def test_prefix_from_environment(monkeypatch):
    monkeypatch.setenv("LACE_COMPONENT_PREFIX", "x")
    app = Flask(__name__)
    lace = Lace(app, views_package="myapp.views")

    assert lace.state().registry.prefixes() == ["x"]
    assert app.extensions[EXTENSION_KEY].extension is lace


def test_view_decorator_with_explicit_tag():
    app = Flask(__name__)
    lace = Lace()

    @lace.view("Shout", tag="shout-box")
    @dataclass
    class Box(View):
        template_source = "<strong>!</strong>"

    @lace.view()
    @dataclass
    class Wrapper(View):
        template_source = "<p><shout-box /></p>"

    lace.init_app(app)

    with app.app_context():
        assert lace.view_class("Shout") is Box
        assert lace.create("Wrapper").render() == "<p><strong>!</strong></p>"


def test_one_extension_serves_two_apps():
    lace = Lace(views_package="myapp.views")

    @lace.view()
    @dataclass
    class Card(View):
        template_source = "<div class='card'></div>"

    first = Flask("first")
    second = Flask("second")
    second.config["LACE_COMPONENT_PREFIX"] = "ui"
    lace.init_app(first)
    lace.init_app(second)

    first_state = first.extensions[EXTENSION_KEY]
    second_state = second.extensions[EXTENSION_KEY]
    assert first_state is not second_state
    assert first_state.registry is not second_state.registry
    assert first_state.registry.prefixes() == ["view"]
    assert second_state.registry.prefixes() == ["ui"]

    with first.app_context():
        assert lace.create("Card").render() == '<div class="card"></div>'
        assert get_view("Badge", label="1").render() == '<b class="badge">1</b>'
    with second.app_context():
        assert lace.state() is second_state
        assert lace.create("Card").render() == '<div class="card"></div>'


@dataclass
class Banner(View):
    site: str
    app: Any = None
    ctx: Any = None

    template_source = "<header><h1 class='site'></h1><p class='path'></p></header>"

    def process_dom(self, dom):
        dom.fill({"site": self.site, "path": self.ctx.path if self.ctx is not None else "-"})


@dataclass
class Shell(View):
    template_source = "<main><view-banner /></main>"


def test_init_args_reach_every_view():
    app = Flask(__name__)
    app.config["LACE_INIT_ARGS"] = {"site": "Docs"}
    lace = Lace(init_args={"site": "Default", "unused": 1})
    lace.view()(Banner)
    lace.view()(Shell)
    lace.init_app(app)

    state = lace.state(app)
    assert state.factory.init_args["app"] is app
    assert state.factory.init_args["site"] == "Docs"

    with app.test_request_context("/pages/1"):
        html = lace.create("Shell").render()
        banner = state.factory.create(Banner, site="Given").model
    assert html == '<main><header><h1 class="site">Docs</h1><p class="path">/pages/1</p></header></main>'
    assert banner.site == "Given"
    assert banner.app is app


def test_ctx_is_none_outside_a_request():
    app = Flask(__name__)
    lace = Lace(init_args={"site": "S"})
    lace.view()(Banner)
    lace.init_app(app)

    with app.app_context():
        assert '<p class="path">-</p>' in lace.create("Banner").render()


@dataclass
class Title(View):
    text: str

    template_source = "<h2></h2>"

    @classmethod
    def shouting(cls, text):
        return cls(text=text.upper())

    def process_dom(self, dom):
        dom.first("h2").set_content(self.text)


def test_model_constructor_by_name_or_callable():
    app = Flask(__name__)
    app.config["LACE_MODEL_CONSTRUCTOR"] = "shouting"
    lace = Lace(app)
    lace.view()(Title)
    with app.app_context():
        assert lace.create(Title, text="hi").render() == "<h2>HI</h2>"

    built = []

    def construct(view_class, **kwargs):
        built.append(view_class)
        return view_class(**kwargs)

    other = Flask(__name__)
    lace = Lace(model_constructor=construct)
    lace.init_app(other)
    with other.app_context():
        assert lace.create(Title, text="hi").render() == "<h2>hi</h2>"
    assert built == [Title]


def test_factory_class_option():
    created = []

    class RecordingFactory(ViewFactory):
        def create(self, view, **attrs):
            created.append(view)
            return super().create(view, **attrs)

    app = Flask(__name__)
    lace = Lace(factory_class=RecordingFactory)
    lace.init_app(app)

    assert isinstance(lace.state(app).factory, RecordingFactory)
    with app.app_context():
        lace.create(Title, text="x").render()
    assert created == [Title]

    imported = Flask(__name__)
    imported.config["LACE_FACTORY_CLASS"] = "lace.rendering.factory:ViewFactory"
    Lace(imported)
    assert type(imported.extensions[EXTENSION_KEY].factory) is ViewFactory

    broken = Flask(__name__)
    broken.config["LACE_FACTORY_CLASS"] = "lace.errors:LaceError"
    with pytest.raises(LaceError):
        Lace(broken)
