from external_mdns.events import RouteAdded, RouteDeleted, RouteUpdated
from external_mdns.handlers import RouteEventHandler
from external_mdns.registry import HandlerRegistry
from external_mdns.resources import IngressRoute, Route


class RecordingHandler(RouteEventHandler):
    def __init__(self):
        self.calls = []

    def on_add(self, route):
        self.calls.append(("add", route.name))

    def on_update(self, old, new):
        self.calls.append(("update", old.name, new.routes[0].match))

    def on_delete(self, route):
        self.calls.append(("delete", route.name))


class ExplodingHandler(RecordingHandler):
    def on_add(self, route):
        raise RuntimeError("boom")


def build_route(match="Host(`a.local`)"):
    return IngressRoute(name="demo", namespace="apps", routes=(Route(match),))


def test_registry_dispatches_events():
    handler = RecordingHandler()
    registry = HandlerRegistry()
    registry.register("ingress", handler)

    registry.handle(RouteAdded(build_route()))
    registry.handle(RouteUpdated(build_route(), build_route("Host(`b.local`)")))
    registry.handle(RouteDeleted(build_route("Host(`b.local`)")))

    assert handler.calls == [
        ("add", "demo"),
        ("update", "demo", "Host(`b.local`)"),
        ("delete", "demo"),
    ]


def test_registry_rejects_duplicate_registration():
    registry = HandlerRegistry()
    handler = RecordingHandler()

    registry.register("ingress", handler)

    try:
        registry.register("ingress", handler)
    except ValueError:
        pass
    else:
        raise AssertionError("duplicate registration did not raise ValueError")


def test_failing_handler_does_not_block_others():
    registry = HandlerRegistry()
    healthy = RecordingHandler()
    registry.register("broken", ExplodingHandler())
    registry.register("healthy", healthy)

    registry.handle(RouteAdded(build_route()))

    assert healthy.calls == [("add", "demo")]


def test_unregister():
    registry = HandlerRegistry()
    handler = RecordingHandler()
    registry.register("ingress", handler)

    registry.unregister("ingress")
    registry.handle(RouteAdded(build_route()))

    assert len(registry) == 0
    assert handler.calls == []
