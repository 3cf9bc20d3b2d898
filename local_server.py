#!/usr/bin/env python3
"""
Simple local development server for the price lookup API
Translates HTTP requests into API Gateway proxy events for the Lambda handlers.
AWS credentials and the variables in .env are used as-is.
"""

from http.server import HTTPServer, BaseHTTPRequestHandler
from urllib.parse import urlsplit, parse_qsl
from pathlib import Path
import sys

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).parent / 'src'))

from handlers import price_lookup, search_history  # noqa: E402

ROUTES = {
    '/search': price_lookup.handler,
    '/history': search_history.handler,
}


class CORSRequestHandler(BaseHTTPRequestHandler):
    def _set_cors_headers(self):
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, POST, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type')

    def do_OPTIONS(self):
        self.send_response(200)
        self._set_cors_headers()
        self.end_headers()

    def _dispatch(self, method):
        url = urlsplit(self.path)
        lambda_handler = ROUTES.get(url.path)
        if lambda_handler is None:
            self.send_response(404)
            self._set_cors_headers()
            self.end_headers()
            return

        content_length = int(self.headers.get('Content-Length', 0))
        body = self.rfile.read(content_length).decode('utf-8') if content_length > 0 else None
        event = {
            'httpMethod': method,
            'path': url.path,
            'queryStringParameters': dict(parse_qsl(url.query)) or None,
            'headers': dict(self.headers),
            'body': body,
            'isBase64Encoded': False,
        }

        result = lambda_handler(event, None)

        self.send_response(result['statusCode'])
        for name, value in result.get('headers', {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(result.get('body', '').encode())

    def do_POST(self):
        self._dispatch('POST')

    def do_GET(self):
        self._dispatch('GET')


if __name__ == '__main__':
    load_dotenv()
    server = HTTPServer(('localhost', 3000), CORSRequestHandler)
    print('Price lookup API running on http://localhost:3000')
    print('  POST /search   {"cryptoId": "bitcoin", "email": "you@example.com"}')
    print('  GET  /history?email=you@example.com')
    print('\nPress Ctrl+C to stop\n')
    server.serve_forever()
