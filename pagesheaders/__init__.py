"""PagesHeaders - generate a Cloudflare Pages ``_headers`` file with CSP auto-hashes."""

__version__ = "1.6.3"
