import copy
from collections import OrderedDict
from collections.abc import Mapping

from .capabilities import DEFAULT_CAPABILITIES, DUMMY, POST, PUT, DELETE, GET
from .links import LinkResolver, VerbAccessor, DummyAccessor, EmbeddedAccessor
from .schema import validate_envelope
from .utils import AccessorMixin, insert_in_path, join_path

LINKS = 'links'
ACTIONS = 'actions'
SELF = 'self'

#: Map from resource type to resource class.
RESOURCE_TYPES = {}


class ResourceMeta(type):

    def __new__(mcs, name, bases, members):
        class_ = super(ResourceMeta, mcs).__new__(mcs, name, bases, members)
        resource_type = members.get('resource_type')
        if resource_type:
            RESOURCE_TYPES[resource_type] = class_
        return class_


class Resource(AccessorMixin, metaclass=ResourceMeta):
    """
    A resource returned by the API, with methods discovered from its links and actions.

    Attributes of the response are readable as attributes of the resource (``deployment.name``). Links become
    association methods (``deployment.servers()``), actions become POST methods (``server.launch()``), and
    resource types listed in the :class:`CapabilityTable` get ``destroy()`` and ``update()``.

    .. attribute:: resource_type

        The type named by the response content type, e.g. ``'deployment'``.

    .. attribute:: href

        The address of the resource, taken from its ``self`` link; ``None`` if it has none.

    .. attribute:: attributes

        An ordered dict of the response fields that are neither links, actions nor associations.

    .. attribute:: associations

        Names of the relations linked from this resource, except ``self``.

    .. attribute:: actions

        Names of the actions declared by the resource.

    .. attribute:: links

        The links of the resource, except ``self``.

    .. attribute:: raw

        A copy of the response this resource was built from.

    :param ResourceFactory factory:
    :param dict envelope: a deserialized JSON object
    :param str resource_type:
    """
    resource_type = None

    def __init__(self, factory, envelope, resource_type):
        validate_envelope(envelope)
        envelope = copy.deepcopy(envelope)

        self.raw = copy.deepcopy(envelope)
        self.resource_type = resource_type
        self.href = None
        self.attributes = OrderedDict()
        self.associations = set()
        self.actions = set()

        links = envelope.pop(LINKS, None) or []
        raw_actions = envelope.pop(ACTIONS, None) or []

        for index, link in enumerate(links):
            if link['rel'] == SELF:
                self.href = links.pop(index)['href']
                break
        self.links = links

        accessors = OrderedDict()
        for action in raw_actions:
            name = action['rel']
            self.actions.add(name)
            accessors[name] = VerbAccessor(factory, name, POST, self._path_factory(name))

        for rel, accessor in factory.resolver.bind(links, self.associations).items():
            accessors[rel] = accessor
            self.actions.discard(rel)

        for key, value in envelope.items():
            if key in self.associations:
                # a parent requested with a view may embed its children; avoid fetching them again
                embedded = self._embedded(factory, key, value)
                if embedded is not None:
                    accessors[key] = embedded
            else:
                self.attributes[key] = value

        self._bind_verbs(factory, accessors)
        for name in accessors:
            self.attributes.pop(name, None)
        self.accessors = accessors

    def _path_factory(self, segment=None):
        def path():
            if self.href is None:
                return None
            return join_path(self.href, segment)
        return path

    @staticmethod
    def _embedded(factory, key, value):
        if not isinstance(value, Mapping) or not isinstance(value.get(LINKS), list):
            return None

        child_href = None
        for link in value[LINKS]:
            if isinstance(link, Mapping) and link.get('rel') == SELF:
                child_href = link.get('href')
                break

        # only instances are known to be embedded this way
        if not isinstance(child_href, str) or 'instance' not in child_href:
            return None

        validate_envelope(value)
        return EmbeddedAccessor(factory, key, copy.deepcopy(value), 'instance', child_href)

    def _bind_verbs(self, factory, accessors):
        capabilities = factory.capabilities

        if capabilities.can_destroy(self.resource_type):
            accessors['destroy'] = VerbAccessor(factory, 'destroy', DELETE, self._path_factory(), takes_params=False)

        if capabilities.can_update(self.resource_type):
            accessors['update'] = VerbAccessor(factory, 'update', PUT, self._path_factory())

    def _lookup(self, name):
        try:
            return super(Resource, self)._lookup(name)
        except KeyError:
            attributes = self.__dict__.get('attributes')
            if attributes is not None and name in attributes:
                return attributes[name]
            raise

    @classmethod
    def for_type(cls, resource_type):
        return RESOURCE_TYPES.get(resource_type, Resource)

    def __repr__(self):
        details = ['resource_type="{}"'.format(self.resource_type)]
        for name in ('name', 'resource_uid'):
            if name in self.attributes:
                details.append('{}={!r}'.format(name, self.attributes[name]))
        return '<{} {}>'.format(self.__class__.__name__, ', '.join(details))


class InstanceResource(Resource):
    resource_type = 'instance'

    def _bind_verbs(self, factory, accessors):
        # live tasks are not always linked from an instance
        accessors['live_tasks'] = VerbAccessor(factory, 'live_tasks', GET,
                                               self._path_factory(factory.capabilities.path_segment('live_tasks')))
        super(InstanceResource, self)._bind_verbs(factory, accessors)


class ResourceCollection(AccessorMixin, list):
    """
    A list of resources of the same type, with the methods that act on the collection as a whole (such as
    ``create()``) bound to the path it was read from.
    """

    def __init__(self, resources, resource_type, path, accessors=None):
        super(ResourceCollection, self).__init__(resources)
        self.resource_type = resource_type
        self.path = path
        self.accessors = accessors or OrderedDict()

    def __repr__(self):
        return '<{} resource_type="{}" {}>'.format(self.__class__.__name__,
                                                   self.resource_type,
                                                   list.__repr__(self))


class DummyResource(AccessorMixin):
    """
    Stands in for a collection whose root path cannot be read with a GET. It has no attributes, only the
    methods it is constructed with.

    :param ResourceFactory factory:
    :param str path: base path of the methods
    :param dict methods: method names mapped to the HTTP method they issue, or to ``DUMMY`` for a method returning
        a nested dummy resource
    """

    def __init__(self, factory, path, methods):
        self.href = path
        self.accessors = accessors = OrderedDict()
        capabilities = factory.capabilities

        for name, method in methods.items():
            if method == DUMMY:
                accessors[name] = DummyAccessor(factory, name, join_path(path, name), capabilities.instance_methods,
                                                with_id=True)
            else:
                accessors[name] = VerbAccessor(factory, name, method, join_path(path, capabilities.path_segment(name)))

    def __repr__(self):
        return '<{} {} {}>'.format(self.__class__.__name__, self.href, sorted(self.accessors))


class ResourceFactory(object):
    """
    Converts API responses into :class:`Resource` objects.

    :param ActionDispatcher dispatcher:
    :param CapabilityTable capabilities:
    """

    def __init__(self, dispatcher, capabilities=DEFAULT_CAPABILITIES):
        self.dispatcher = dispatcher
        self.capabilities = capabilities
        self.resolver = LinkResolver(self)

    def fetch(self, path, params=None):
        """
        Reads ``path`` and returns the processed response.
        """
        return self.process(*self.dispatcher.get(path, params))

    def process(self, payload, resource_type, path):
        """
        :param payload: a deserialized response body
        :param str resource_type: ``''`` if the response did not name one
        :param str path: the path the payload was read from
        :return: a :class:`Resource`, a :class:`ResourceCollection` for a list payload, or ``payload`` itself
            if there is no resource type
        """
        if not resource_type:
            return payload

        resource_class = Resource.for_type(resource_type)
        if isinstance(payload, list):
            resources = [resource_class(self, item, resource_type) for item in payload]
            return ResourceCollection(resources, resource_type, path, self._collection_accessors(resource_type, path))
        return resource_class(self, payload, resource_type)

    def _collection_accessors(self, resource_type, path):
        accessors = OrderedDict()

        if self.capabilities.can_create(resource_type):
            accessors['create'] = VerbAccessor(self, 'create', POST, path)

        for name, method in self.capabilities.collection_actions.get(resource_type, {}).items():
            accessors[name] = VerbAccessor(self, name, method, insert_in_path(path, name))
        return accessors
