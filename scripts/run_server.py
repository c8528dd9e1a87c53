"""Launch the chat service with uvicorn."""

from __future__ import annotations

import argparse
import os

import uvicorn


def main() -> None:
	parser = argparse.ArgumentParser(description="Run the conversational chat service.")
	parser.add_argument(
		"--host",
		type=str,
		default=os.environ.get("HOST", "127.0.0.1"),
		help="Host to bind the server to (default: 127.0.0.1)",
	)
	parser.add_argument(
		"--port",
		type=int,
		default=int(os.environ.get("PORT", "3000")),
		help="Port to bind the server to (default: 3000)",
	)
	parser.add_argument(
		"--reload",
		action="store_true",
		help="Enable auto-reload for development (default: off)",
	)
	args = parser.parse_args()

	# Sessions live in process memory, so a single worker keeps one map.
	uvicorn.run(
		"chatbot.backend.main:app",
		host=args.host,
		port=args.port,
		reload=args.reload,
		log_level="info",
	)


if __name__ == "__main__":
	main()
