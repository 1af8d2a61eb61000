"""AeroSSR: server-side rendering with on-demand JavaScript bundles.

Serves HTML pages, static assets and module bundles built from a project's
own sources at ``/dist?entryPoint=...``, with caching and conditional GET.

Basic usage::

    from aerossr import App, AppConfig

    app = App(AppConfig(project_path="./site"))

    @app.route("/api/hello/:name")
    def hello(ctx):
        return {"hello": ctx.params["name"]}

    app.run()

Bundling without a server::

    from aerossr.bundling import BundleGenerator
    result = await BundleGenerator("./site").generate("src/main.js")
"""

__version__ = "0.1.0"
__all__ = [
    "AeroSSRError",
    "AnyResponse",
    "App",
    "AppConfig",
    "BadRequestError",
    "BundleCache",
    "BundleError",
    "BundleGenerator",
    "BundleOptions",
    "BundleResult",
    "ConfigurationError",
    "HTTPError",
    "MetaTags",
    "MethodNotAllowed",
    "Middleware",
    "Next",
    "NotFound",
    "Redirect",
    "Request",
    "Response",
    "RouteContext",
    "Router",
    "__version__",
]

_ERRORS = (
    "AeroSSRError",
    "BadRequestError",
    "BundleError",
    "ConfigurationError",
    "HTTPError",
    "MethodNotAllowed",
    "NotFound",
)
_BUNDLING = ("BundleCache", "BundleGenerator", "BundleOptions", "BundleResult")


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import aerossr`` fast while providing a clean top-level API.
    """
    if name == "App":
        from aerossr.app import App

        return App

    if name in ("AppConfig", "MetaTags"):
        from aerossr import config as _config

        return getattr(_config, name)

    if name == "Request":
        from aerossr.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from aerossr.http import response as _resp

        return getattr(_resp, name)

    if name in ("Router", "RouteContext"):
        from aerossr import routing as _routing

        return getattr(_routing, name)

    if name in _BUNDLING:
        from aerossr import bundling as _bundling

        return getattr(_bundling, name)

    if name in ("AnyResponse", "Middleware", "Next"):
        from aerossr.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in _ERRORS:
        from aerossr import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
