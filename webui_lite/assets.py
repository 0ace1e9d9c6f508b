"""Templated static assets served next to the API."""

import json
from html import escape

from webui_lite.config import Config

HTML_CACHE_CONTROL = "public, max-age=43200"
ASSET_CACHE_CONTROL = "public, max-age=86400"

MODELS_PLACEHOLDER = "$MODELS_PLACEHOLDER$"
TITLE_PLACEHOLDER = "$TITLE_PLACEHOLDER$"

INDEX_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>$TITLE_PLACEHOLDER$</title>
    <link rel="icon" href="/favicon.svg" type="image/svg+xml" />
    <link rel="manifest" href="/site.webmanifest" />
  </head>
  <body>
    <div id="app"></div>
    <script>
      window.APP_CONFIG = {
        title: '$TITLE_PLACEHOLDER$',
        availableModels: '$MODELS_PLACEHOLDER$'
      };
    </script>
  </body>
</html>
"""

FAVICON_SVG = """<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 64 64">
  <rect width="64" height="64" rx="14" fill="#10a37f"/>
  <path d="M18 22h28v16H30l-8 7v-7h-4z" fill="#fff"/>
</svg>
"""


def render_index(config: Config) -> str:
    title = escape(config.title, quote=True)
    models = escape(config.model_ids, quote=True)
    return INDEX_TEMPLATE.replace(TITLE_PLACEHOLDER, title).replace(
        MODELS_PLACEHOLDER, models
    )


def render_manifest(config: Config) -> str:
    return json.dumps(
        {
            "name": config.title,
            "short_name": config.title,
            "start_url": "/",
            "display": "standalone",
            "background_color": "#ffffff",
            "theme_color": "#10a37f",
            "icons": [
                {"src": "/favicon.svg", "sizes": "any", "type": "image/svg+xml"}
            ],
        }
    )
