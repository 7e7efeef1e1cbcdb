import logging
from collections import OrderedDict

import requests

from .capabilities import DEFAULT_CAPABILITIES, GET, CapabilityTable
from .dispatcher import ActionDispatcher
from .exceptions import (RightApiError, ConfigurationError, AuthenticationError, UnexpectedStatusError,
                         MalformedResponseError)
from .links import BackupsAccessor, DummyAccessor, VerbAccessor
from .resource import Resource, ResourceCollection, DummyResource, ResourceFactory
from .session import SessionManager, ROOT_RESOURCE, ROOT_INSTANCE_RESOURCE
from .utils import AccessorMixin, merge_params

__all__ = (
    'Client',
    'Resource',
    'ResourceCollection',
    'DummyResource',
    'CapabilityTable',
    'RightApiError',
    'ConfigurationError',
    'AuthenticationError',
    'UnexpectedStatusError',
    'MalformedResponseError',
    'capabilities',
    'signals'
)

log = logging.getLogger(__name__)

DEFAULT_API_URL = 'https://my.rightscale.com'
DEFAULT_API_VERSION = '1.5'
DEFAULT_VENDOR = 'rightscale'
MINIMUM_API_VERSION = 1.5

#: Keys read by :meth:`Client.from_config`.
CONFIG_KEYS = ('email', 'password', 'account_id', 'instance_token', 'api_url', 'api_version', 'cookies', 'vendor')


class Client(AccessorMixin):
    """
    A client for the RightScale API.

    The client logs in on creation, unless given the ``cookies`` of an existing session, and then exposes the
    root resources of the API as methods. With user credentials these are discovered from the links of
    ``/api/session``; with an instance token, which cannot read most root collections, they are
    ``get_instance()``, ``clouds()`` and ``backups()``.

    Usage example:

    .. code-block:: python

        client = Client(email='me@example.com', password='secret', account_id=1234)
        deployment = client.deployments(id=42)
        for server in deployment.servers():
            print(server.name)

    :param str email:
    :param str password:
    :param account_id:
    :param str instance_token: log in as an instance instead of a user
    :param str api_url: base URL of the API
    :param str api_version: must be 1.5 or later
    :param dict cookies: cookies of an existing session; skips the login
    :param str vendor: vendor segment of resource content types
    :param requests.Session session: HTTP session to send requests with
    :param CapabilityTable capabilities: static capabilities of the API's resource types
    :raises ConfigurationError: if the API version is unsupported or there is nothing to authenticate with
    """

    def __init__(self,
                 email=None,
                 password=None,
                 account_id=None,
                 instance_token=None,
                 api_url=DEFAULT_API_URL,
                 api_version=DEFAULT_API_VERSION,
                 cookies=None,
                 vendor=DEFAULT_VENDOR,
                 session=None,
                 capabilities=None):
        try:
            version = float(api_version)
        except (TypeError, ValueError):
            raise ConfigurationError('Invalid API version: {!r}'.format(api_version))
        if version < MINIMUM_API_VERSION:
            raise ConfigurationError('This API client is only compatible with API {} and upwards.'.format(
                MINIMUM_API_VERSION))

        if not (cookies or instance_token or (email and password and account_id is not None)):
            raise ConfigurationError('Either email, password and account_id, an instance_token, '
                                     'or the cookies of an existing session are required.')

        self.accessors = OrderedDict()
        self.session_manager = SessionManager(session or requests.Session(),
                                              api_url,
                                              str(api_version),
                                              email=email,
                                              password=password,
                                              account_id=account_id,
                                              instance_token=instance_token,
                                              cookies=cookies)
        self.capabilities = capabilities or DEFAULT_CAPABILITIES
        self.dispatcher = ActionDispatcher(self.session_manager, vendor=vendor)
        self.factory = ResourceFactory(self.dispatcher, self.capabilities)
        self.dispatcher.bind(self.factory)

        if self.session_manager.cookies is None:
            self.session_manager.login()

        if instance_token:
            self._bind_instance_methods()
        else:
            self.accessors['session'] = VerbAccessor(self.factory, 'session', GET, ROOT_RESOURCE)
            session = self.session()
            if not isinstance(session, Resource):
                raise MalformedResponseError('{} did not return a session resource'.format(ROOT_RESOURCE))
            self.accessors.update(self.factory.resolver.bind(session.links))

        log.debug('Root methods: %s', ', '.join(self.accessors))

    @classmethod
    def from_config(cls, config, **kwargs):
        """
        Creates a client from a configuration mapping, such as a parsed config file. Keys not in
        :data:`CONFIG_KEYS` and ``None`` values are ignored.
        """
        options = {key: value for key, value in config.items() if key in CONFIG_KEYS and value is not None}
        options.update(kwargs)
        return cls(**options)

    def _bind_instance_methods(self):
        self.accessors['get_instance'] = VerbAccessor(self.factory, 'get_instance', GET, ROOT_INSTANCE_RESOURCE)

        # like tags, the root collections cannot be listed when logged in as an instance
        for name, methods in self.capabilities.instance_actions.items():
            self.accessors[name] = DummyAccessor(self.factory, name, '/api/{}'.format(name), methods, with_id=True)

        self.accessors['backups'] = BackupsAccessor(self.factory, 'backups', '/api/backups')

    @property
    def cookies(self):
        return self.session_manager.cookies

    def resource(self, path, *args, **kwargs):
        """
        Reads any path of the API.

        :param str path:
        :return: a :class:`Resource` or a :class:`ResourceCollection`
        """
        params = merge_params(args, kwargs)
        return self.factory.fetch(path, params)

    def log(self, stream):
        """
        Logs every HTTP request to ``stream``, which can be any file-like object (including ``sys.stdout``).
        """
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter('%(asctime)s %(name)s %(levelname)s: %(message)s'))
        package_log = logging.getLogger(__name__)
        package_log.addHandler(handler)
        package_log.setLevel(logging.DEBUG)
        return handler

    def __repr__(self):
        return '<Client>'
