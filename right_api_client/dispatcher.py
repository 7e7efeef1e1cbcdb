import logging
import re
from urllib.parse import quote_plus

from .exceptions import AuthenticationError, MalformedResponseError, UnexpectedStatusError
from .signals import request_started, request_finished, session_expired
from .utils import add_id_to_path, flatten_params

log = logging.getLogger(__name__)

FORBIDDEN = 403


def build_query(path, params):
    """
    Appends ``params`` to ``path`` as a query string.

    ``filters`` is a list rendered as repeated ``filter[]=`` entries ahead of the other parameters; the API reads
    several values for the same key, which a plain dict of query params cannot express.
    """
    params = dict(params)
    filters = params.pop('filters', None)
    params_string = '&'.join('{}={}'.format(k, quote_plus(str(v))) for k, v in params.items())

    if filters:
        path += '?filter[]=' + '&filter[]='.join(quote_plus(f) for f in filters)
        path += '&' + params_string
    else:
        path += '?' + params_string

    return path.rstrip('&').rstrip('?')


class ActionDispatcher(object):
    """
    Sends the generic GET, POST, PUT and DELETE requests that resources are navigated with, and enforces the
    status code contract of each method.

    A request answered with ``403 Forbidden`` is taken to mean the session expired: the dispatcher
    re-authenticates and replays the request once. A second 403 is an :class:`AuthenticationError`.

    :param SessionManager session:
    :param str vendor: vendor segment of the content types that carry a resource type,
        as in ``application/vnd.<vendor>.<resource_type>+json``
    """

    def __init__(self, session, vendor='rightscale'):
        self.session = session
        self.vendor = vendor
        self.factory = None
        self._resource_type_pattern = re.compile(r'\.{}\.(.*)\+json'.format(re.escape(vendor)))

    def bind(self, factory):
        self.factory = factory
        return self

    def resource_type(self, content_type):
        """
        Returns the resource type named by ``content_type``, or ``''`` for content types of other vendors.
        """
        match = self._resource_type_pattern.search(content_type or '')
        if match is None:
            return ''
        return match.group(1)

    def _send(self, method, path, data=None):
        request_started.send(self, method=method, path=path)
        log.debug('%s %s', method, path)

        response = self.session.transport.request(method,
                                                  self.session.url(path),
                                                  data=data,
                                                  headers=self.session.headers(),
                                                  cookies=self.session.cookies,
                                                  allow_redirects=False)

        log.debug('%s %s -> %s', method, path, response.status_code)
        request_finished.send(self, method=method, path=path, response=response)
        return response

    def _request(self, method, path, data=None):
        response = self._send(method, path, data)
        if response.status_code != FORBIDDEN:
            return response

        log.warning('%s %s was forbidden; re-authenticating', method, path)
        session_expired.send(self, method=method, path=path)
        self.session.reauthenticate()

        response = self._send(method, path, data)
        if response.status_code == FORBIDDEN:
            raise AuthenticationError('{} {} is still forbidden after re-authenticating'.format(method, path),
                                      status_code=response.status_code,
                                      body=response.text)
        return response

    @staticmethod
    def _parse(response, path):
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError('Response to {} is not valid JSON: {}'.format(path, e))

    def get(self, path, params=None):
        """
        :param str path:
        :param dict params: query parameters; ``id`` is appended to the path and ``filters`` is a list of filter
            expressions
        :return: a tuple ``(data, resource_type, path)`` where ``path`` includes the query string
        """
        params = dict(params or {})
        path = build_query(add_id_to_path(path, params), params)

        response = self._request('GET', path)
        if response.status_code != 200:
            raise UnexpectedStatusError(response.status_code, response.text, 'GET', path)

        resource_type = self.resource_type(response.headers.get('Content-Type'))
        return self._parse(response, path), resource_type, path

    def post(self, path, params=None):
        """
        :return: the created resource, read back from the ``Location`` of a 201 or 202 response; a resource for
            a 200 response with a vendor content type; the :class:`requests.Response` for any other 2xx response
        """
        response = self._request('POST', path, flatten_params(params or {}))
        code = response.status_code

        if code in (201, 202):
            location = response.headers.get('Location')
            if not location:
                raise MalformedResponseError('{} response to POST {} has no Location header'.format(code, path))
            return self.factory.fetch(self._strip_api_url(location))

        if 200 <= code < 300:
            resource_type = self.resource_type(response.headers.get('Content-Type'))
            if code == 200 and resource_type:
                return self.factory.process(self._parse(response, path), resource_type, path)
            return response

        raise UnexpectedStatusError(code, response.text, 'POST', path)

    def put(self, path, params=None):
        response = self._request('PUT', path, flatten_params(params or {}))
        if response.status_code != 204:
            raise UnexpectedStatusError(response.status_code, response.text, 'PUT', path)

    def delete(self, path, params=None):
        response = self._request('DELETE', path, flatten_params(params or {}))
        if response.status_code != 200:
            raise UnexpectedStatusError(response.status_code, response.text, 'DELETE', path)

    def _strip_api_url(self, location):
        if location.startswith(self.session.api_url):
            return location[len(self.session.api_url):]
        return location
