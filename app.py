"""
JS Monitor Web Interface
Read-only Flask dashboard over the recorded versions and the latest snapshot.
"""

import os
from typing import Optional

from flask import Flask, render_template_string, jsonify, send_from_directory, abort

from jsmonitor.core.config import load_config
from jsmonitor.services.datastore import DataStore

MAIN_TEMPLATE = r'''
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>JS Monitor - Fansly main JS</title>
    <style>
        :root {
            --bg-primary: #050810;
            --bg-card: #0d1320;
            --text-primary: #f0f4f8;
            --text-secondary: #8b9cb3;
            --accent-cyan: #06d6e0;
            --accent-green: #10b981;
            --accent-yellow: #fbbf24;
            --accent-red: #f43f5e;
            --border-color: #1e293b;
        }

        * {
            margin: 0;
            padding: 0;
            box-sizing: border-box;
        }

        body {
            font-family: 'Inter', -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            background: var(--bg-primary);
            color: var(--text-primary);
            min-height: 100vh;
            padding: 2rem;
        }

        h1 {
            color: var(--accent-cyan);
            margin-bottom: 1.5rem;
        }

        h2 {
            color: var(--text-secondary);
            font-size: 1rem;
            text-transform: uppercase;
            letter-spacing: 0.08em;
            margin: 1.5rem 0 0.75rem;
        }

        .card {
            background: var(--bg-card);
            border: 1px solid var(--border-color);
            border-radius: 12px;
            padding: 1.25rem 1.5rem;
            margin-bottom: 1rem;
        }

        .mono {
            font-family: 'JetBrains Mono', 'Fira Code', monospace;
            word-break: break-all;
        }

        .tag {
            display: inline-block;
            padding: 0.1rem 0.5rem;
            border-radius: 6px;
            font-size: 0.75rem;
            background: rgba(16, 185, 129, 0.15);
            color: var(--accent-green);
            margin-right: 0.5rem;
        }

        .tag.other {
            background: rgba(251, 191, 36, 0.15);
            color: var(--accent-yellow);
        }

        .empty {
            color: var(--accent-red);
        }

        table {
            width: 100%;
            border-collapse: collapse;
        }

        td, th {
            text-align: left;
            padding: 0.5rem;
            border-bottom: 1px solid var(--border-color);
        }

        a {
            color: var(--accent-cyan);
            text-decoration: none;
        }
    </style>
</head>
<body>
    <h1>JS Monitor</h1>

    {% if latest %}
    <div class="card">
        <h2>Latest snapshot</h2>
        <p>Captured <span class="mono">{{ latest.captured_at }}</span></p>
        <p>File <a class="mono" href="/js/{{ latest.js_file }}">{{ latest.js_file }}</a></p>
        <p>Hash <span class="mono">{{ latest.source_hash }}</span></p>

        <h2>Check keys</h2>
        {% for finding in latest.check_keys %}
        <p><span class="tag {{ 'other' if finding.pattern.value == 'other' else '' }}">{{ finding.pattern.value }}</span><span class="mono">{{ finding.value }}</span></p>
        {% else %}
        <p class="empty">No check key found</p>
        {% endfor %}

        <h2>Headers</h2>
        {% for name in latest.header_names %}
        <p class="mono">{{ name }}</p>
        {% endfor %}
    </div>
    {% else %}
    <div class="card"><p class="empty">No snapshot recorded yet</p></div>
    {% endif %}

    <div class="card">
        <h2>Versions ({{ versions|length }})</h2>
        <table>
            <tr><th>Version</th><th>Metadata</th></tr>
            {% for version_id in versions %}
            <tr>
                <td class="mono">{{ version_id }}</td>
                <td><a href="/api/versions/{{ version_id }}">json</a></td>
            </tr>
            {% endfor %}
        </table>
    </div>
</body>
</html>
'''


def create_app(datastore: Optional[DataStore] = None) -> Flask:
    if datastore is None:
        datastore = DataStore.from_config(load_config().storage)

    app = Flask(__name__)

    @app.route('/')
    def index():
        return render_template_string(
            MAIN_TEMPLATE,
            latest=datastore.load_latest(),
            versions=list(reversed(datastore.list_versions()))
        )

    @app.route('/api/latest', methods=['GET'])
    def api_latest():
        snapshot = datastore.load_latest()
        if snapshot is None:
            return jsonify({'success': False, 'error': 'No snapshot recorded'}), 404
        return jsonify(snapshot.to_dict())

    @app.route('/api/versions', methods=['GET'])
    def api_versions():
        return jsonify({'versions': datastore.list_versions()})

    @app.route('/api/versions/<version_id>', methods=['GET'])
    def api_version(version_id):
        record = datastore.load_version(version_id)
        if record is None:
            return jsonify({'success': False, 'error': f'Unknown version: {version_id}'}), 404
        return jsonify(record.to_dict())

    @app.route('/js/<path:filename>')
    def serve_asset(filename):
        if not datastore.js_dir.exists():
            abort(404)
        return send_from_directory(os.path.abspath(datastore.js_dir), filename)

    return app


if __name__ == '__main__':
    create_app().run(host='0.0.0.0', port=int(os.environ.get('PORT', 6789)), debug=False)
