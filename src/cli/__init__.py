"""CLI tools for the study-material generator.

- ``python -m src.cli.generate`` — generate study material for a URL or a
  local text file and print it as text or JSON.

Heavy imports (providers, the FastAPI app module) are deferred inside
functions so argument errors are reported without bootstrapping the
application.
"""
