#!/usr/bin/env python3
"""Nightfall CMS — MDX post editor API: save to GitHub, generate drafts, editor sessions."""

import argparse
import logging

from flask import Flask, jsonify

from config import GITHUB_BRANCH, GITHUB_OWNER, GITHUB_REPO, PORT, get_github_token, get_openai_api_key

app = Flask(__name__)

from routes.editor import bp as editor_bp  # noqa: E402
from routes.generate import bp as generate_bp  # noqa: E402
from routes.posts import bp as posts_bp  # noqa: E402

app.register_blueprint(posts_bp)
app.register_blueprint(generate_bp)
app.register_blueprint(editor_bp)


@app.route("/api/health")
def health():
    """Which credentials are configured and where posts are committed."""
    return jsonify(
        {
            "ok": True,
            "repository": f"{GITHUB_OWNER}/{GITHUB_REPO}",
            "branch": GITHUB_BRANCH,
            "github_token": bool(get_github_token()),
            "openai_api_key": bool(get_openai_api_key()),
        }
    )


def main():
    """Entry point for `nightfall-cms` CLI command."""
    parser = argparse.ArgumentParser(description="Nightfall CMS")
    parser.add_argument(
        "--port", type=int, default=PORT, help=f"Port to listen on (default: {PORT})"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    cli_args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if cli_args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("\n  Nightfall CMS v0.1.0")
    print(f"  Port: {cli_args.port}")
    print(f"  Repository: {GITHUB_OWNER}/{GITHUB_REPO}@{GITHUB_BRANCH}")
    print(f"  GitHub token: {'set' if get_github_token() else 'missing (saves will fail)'}")
    print(f"  OpenAI key: {'set' if get_openai_api_key() else 'missing (generation will fail)'}\n")

    app.run(port=cli_args.port, threaded=True)


if __name__ == "__main__":
    main()
