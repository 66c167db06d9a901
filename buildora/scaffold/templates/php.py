"""PHP starter: index.php echoing a greeting, plus the shared stylesheet and script."""
from __future__ import annotations

from . import html

FILES: dict[str, str] = {
    "index.php": """<?php
  $title = "{name}";
  echo "<h1>Welcome to " . $title . "</h1>";
  echo "<p>Edit index.php to get started.</p>";
?>""",
    "style.css": html.FILES["style.css"],
    "script.js": html.FILES["script.js"],
}
