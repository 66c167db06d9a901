"""Static site starter: index.html linking style.css and loading script.js.

``{name}`` placeholders are filled with the project name.
"""
from __future__ import annotations

FILES: dict[str, str] = {
    "index.html": """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{name}</title>
    <link rel="stylesheet" href="style.css">
</head>
<body>
    <div class="container">
        <h1>Welcome to {name}</h1>
        <p>Start editing this file!</p>
        <button id="clickMe">Click Me</button>
    </div>
    <script src="script.js"></script>
</body>
</html>""",
    "style.css": """body {{
    font-family: system-ui, -apple-system, sans-serif;
    padding: 2rem;
    background-color: #f0f9ff;
    color: #333;
}}
.container {{
    background: white;
    padding: 2rem;
    border-radius: 12px;
    box-shadow: 0 4px 6px -1px rgb(0 0 0 / 0.1);
    text-align: center;
}}
button {{
    background: #2563eb;
    color: white;
    border: none;
    padding: 0.75rem 1.5rem;
    border-radius: 6px;
    font-size: 1rem;
    cursor: pointer;
    margin-top: 1rem;
}}
button:hover {{
    background: #1d4ed8;
}}""",
    "script.js": """document.getElementById('clickMe').addEventListener('click', () => {{
    alert('Hello from {name}!');
}});""",
}
