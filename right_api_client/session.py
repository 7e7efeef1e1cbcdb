import logging

from requests.utils import dict_from_cookiejar

from .exceptions import AuthenticationError
from .signals import authenticated

log = logging.getLogger(__name__)

ROOT_RESOURCE = '/api/session'
ROOT_INSTANCE_RESOURCE = '/api/session/instance'

CREDENTIALS = 'credentials'
INSTANCE_TOKEN = 'instance_token'


class SessionManager(object):
    """
    Holds the session cookies of a client and knows how to obtain new ones.

    Exactly one auth mode is used: the instance token when one is given, the user credentials otherwise.
    A manager created with ``cookies`` only can send requests but cannot re-authenticate.

    :param requests.Session transport: HTTP session used for the login requests
    :param str api_url: base URL of the API
    :param str api_version: value of the ``X-API-Version`` header
    :param str email:
    :param str password:
    :param account_id:
    :param str instance_token:
    :param dict cookies: pre-existing session cookies
    """

    def __init__(self,
                 transport,
                 api_url,
                 api_version,
                 email=None,
                 password=None,
                 account_id=None,
                 instance_token=None,
                 cookies=None):
        self.transport = transport
        self.api_url = api_url.rstrip('/')
        self.api_version = api_version
        self.email = email
        self.password = password
        self.account_id = account_id
        self.instance_token = instance_token
        self.cookies = dict(cookies) if cookies else None

    @property
    def mode(self):
        return INSTANCE_TOKEN if self.instance_token else CREDENTIALS

    @property
    def can_login(self):
        if self.instance_token:
            return True
        return bool(self.email and self.password)

    def url(self, path):
        if path.startswith(('http://', 'https://')):
            return path
        return ''.join((self.api_url, path))

    def headers(self):
        return {
            'X-API-Version': self.api_version,
            'Accept': 'application/json'
        }

    def login_params(self):
        if self.instance_token:
            path = ROOT_INSTANCE_RESOURCE
            params = {'instance_token': self.instance_token}
        else:
            path = ROOT_RESOURCE
            params = {'email': self.email, 'password': self.password}

        if self.account_id is not None:
            params['account_href'] = '/api/accounts/{}'.format(self.account_id)
        return path, params

    def login(self):
        """
        Logs in and stores the session cookies.

        :return: the session cookies
        :raises AuthenticationError: unless the API answers with a redirect or a 2xx status
        """
        if not self.can_login:
            raise AuthenticationError('No credentials or instance token available to log in with')

        path, params = self.login_params()
        log.info('Logging in to %s using %s', self.url(path), self.mode.replace('_', ' '))

        # a redirect is how the API reports a successful login
        response = self.transport.post(self.url(path),
                                       data=params,
                                       headers={'X-API-Version': self.api_version},
                                       allow_redirects=False)

        if not 200 <= response.status_code < 400:
            raise AuthenticationError('Login failed with status {}'.format(response.status_code),
                                      status_code=response.status_code,
                                      body=response.text)

        reauthenticated = self.cookies is not None
        self.cookies = dict_from_cookiejar(response.cookies)
        authenticated.send(self, path=path, reauthenticated=reauthenticated)
        return self.cookies

    def reauthenticate(self):
        log.info('Session expired, logging in again')
        return self.login()
