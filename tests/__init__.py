from http.cookies import SimpleCookie
from unittest import TestCase
from urllib.parse import urlsplit

import requests
from flask import Flask, Response, json, request, redirect
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from right_api_client import Client

API_URL = 'http://api.test'

EMAIL = 'me@example.com'
PASSWORD = 'secret'
ACCOUNT_ID = 1234
INSTANCE_TOKEN = 'instance-secret'

SESSION_COOKIE = 'rs_gbl'

SESSION = {
    "message": "You have successfully logged into the RightScale API.",
    "links": [
        {"rel": "self", "href": "/api/session"},
        {"rel": "deployments", "href": "/api/deployments"},
        {"rel": "servers", "href": "/api/servers"},
        {"rel": "clouds", "href": "/api/clouds"},
        {"rel": "tags", "href": "/api/tags"},
        {"rel": "backups", "href": "/api/backups"}
    ]
}


def vnd(resource_type):
    return 'application/vnd.rightscale.{}+json'.format(resource_type)


def respond(data, resource_type=None, status=200, headers=None):
    response = Response(json.dumps(data),
                        status=status,
                        content_type=vnd(resource_type) if resource_type else 'application/json')
    response.headers.extend(headers or {})
    return response


class FlaskAdapter(BaseAdapter):
    """
    Sends the requests of a :class:`requests.Session` to a Flask application through its test client.
    """

    def __init__(self, app):
        super(FlaskAdapter, self).__init__()
        self.app = app

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        url = urlsplit(request.url)
        path = '{}?{}'.format(url.path, url.query) if url.query else url.path
        headers = {k: v for k, v in request.headers.items() if k.lower() != 'content-length'}

        client = self.app.test_client(use_cookies=False)
        resp = client.open(path, method=request.method, headers=headers, data=request.body)

        response = requests.Response()
        response.status_code = resp.status_code
        response.reason = resp.status.split(' ', 1)[-1]
        response.headers = CaseInsensitiveDict(resp.headers.items())
        response._content = resp.get_data()
        response._content_consumed = True
        response.encoding = 'utf-8'
        response.url = request.url
        response.request = request

        for header in resp.headers.getlist('Set-Cookie'):
            for name, morsel in SimpleCookie(header).items():
                response.cookies.set(name, morsel.value)
        return response

    def close(self):
        pass


class BaseTestCase(TestCase):
    """
    Runs a Flask application that stands in for the API. Tests register the routes they need with :meth:`route`
    and then call :meth:`create_client`.

    .. attribute:: calls

        ``(method, path)`` of every request received, including the query string.

    .. attribute:: logins

        The form of every login request received.
    """

    def setUp(self):
        super(BaseTestCase, self).setUp()
        self.app = self.create_app()
        self.calls = []
        self.logins = []
        self.session_id = 0

        @self.app.before_request
        def record():
            query = request.query_string.decode()
            path = '{}?{}'.format(request.path, query) if query else request.path
            self.calls.append((request.method, path))

        @self.app.route('/api/session', methods=['POST'], endpoint='login')
        def login():
            return self._login(request.form.get('email') == EMAIL and request.form.get('password') == PASSWORD)

        @self.app.route('/api/session/instance', methods=['POST'], endpoint='instance_login')
        def instance_login():
            return self._login(request.form.get('instance_token') == INSTANCE_TOKEN)

        self.route('/api/session')(lambda: respond(SESSION, 'session'))

    def create_app(self):
        app = Flask(__name__)
        app.secret_key = 'XXX'
        app.testing = True
        return app

    def _login(self, valid):
        self.logins.append(dict(request.form.to_dict(), api_version=request.headers.get('X-API-Version')))
        if not valid:
            return respond({"message": "Unauthorized"}, status=401)

        self.session_id += 1
        response = redirect('/api/session')
        response.set_cookie(SESSION_COOKIE, self.current_cookie())
        return response

    def current_cookie(self):
        return 'session-{}'.format(self.session_id)

    def expire_session(self):
        self.session_id += 1

    def is_authorized(self):
        return request.cookies.get(SESSION_COOKIE) == self.current_cookie()

    def route(self, rule, methods=('GET',), authorize=True):
        """
        Registers a view answering ``403 Forbidden`` unless the request carries the current session cookie.
        """
        def decorator(f):
            def view(**kwargs):
                if authorize and not self.is_authorized():
                    return respond({"message": "Session cookie is expired or invalid"}, status=403)
                return f(**kwargs)

            self.app.add_url_rule(rule,
                                  endpoint='{} {}'.format(','.join(methods), rule),
                                  view_func=view,
                                  methods=list(methods))
            return f
        return decorator

    def create_client(self, **kwargs):
        session = requests.Session()
        session.mount(API_URL, FlaskAdapter(self.app))

        options = dict(email=EMAIL, password=PASSWORD, account_id=ACCOUNT_ID, api_url=API_URL, session=session)
        options.update(kwargs)
        return Client(**options)

    def calls_to(self, path, method=None):
        return [(m, p) for m, p in self.calls if p == path and (method is None or m == method)]
