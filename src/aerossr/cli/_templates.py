"""Project scaffolding templates: plain Python strings for ``aerossr init``.

No template engine here: the files are written verbatim.
"""

INDEX_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>AeroSSR App</title>
    <link rel="stylesheet" href="/styles/main.css">
</head>
<body>
    <div id="app">
        <h1>Welcome to AeroSSR</h1>
        <p>Edit public/index.html and src/main.js to get started</p>
    </div>
    <script src="/dist?entryPoint=src/main.js" defer></script>
</body>
</html>
"""

MAIN_CSS = """\
body {
    font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Oxygen, Ubuntu, Cantarell, sans-serif;
    margin: 0;
    padding: 2rem;
}

#app {
    max-width: 800px;
    margin: 0 auto;
}

h1 {
    color: #2c3e50;
}
"""

MAIN_JS = """\
import { greet } from "./greet.js";

export function hydrate(root) {
  var note = document.createElement("p");
  note.textContent = greet("AeroSSR");
  root.appendChild(note);
}
"""

GREET_JS = """\
export function greet(name) {
  return "Hello from " + name + "!";
}
"""

APP_PY = """\
from aerossr import App, AppConfig
from aerossr.bundling import BundleOptions

app = App(AppConfig(bundle=BundleOptions(hydration=True)))


@app.route("/api/health")
def health(ctx):
    return {"status": "ok"}


if __name__ == "__main__":
    app.run()
"""
