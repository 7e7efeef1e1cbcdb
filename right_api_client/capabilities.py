from types import MappingProxyType

GET = 'GET'
POST = 'POST'
PUT = 'PUT'
DELETE = 'DELETE'

# Not an HTTP method: the named method returns a nested DummyResource.
DUMMY = 'DUMMY'


def _frozen(mapping):
    return MappingProxyType(dict(mapping))


class CapabilityTable(object):
    """
    Static knowledge about the API that its responses do not describe: which resource types support the
    standard ``create``/``update``/``destroy`` verbs, and which collections cannot be listed with a plain GET
    and are therefore exposed as :class:`resource.DummyResource` objects.

    A table is immutable; pass a different one to :class:`Client` to describe a different API.

    :param create: resource types whose collections support ``create()`` (POST to the collection path)
    :param destroy: resource types that support ``destroy()`` (DELETE on the resource href)
    :param update: resource types that support ``update()`` (PUT on the resource href)
    :param dict instance_actions: root accessors available under instance-token authentication, mapping an accessor
        name to the methods of the DummyResource it returns
    :param dict tag_methods: methods of the DummyResource bound to the ``tags`` relation
    :param dict backup_methods: methods of the DummyResource returned by ``backups()`` with no arguments
    :param dict instance_methods: methods of the DummyResource returned by a dummy ``instances()`` method
    :param dict collection_actions: per resource type, the methods of its collections that act on many members at once;
        their path is the collection path with the method name inserted before the query string
    :param dict path_segments: path segment used by a dummy method when it is not the method name; ``None`` means the
        base path itself
    """

    def __init__(self,
                 create=(),
                 destroy=(),
                 update=(),
                 instance_actions=None,
                 tag_methods=None,
                 backup_methods=None,
                 instance_methods=None,
                 collection_actions=None,
                 path_segments=None):
        self.create = frozenset(create)
        self.destroy = frozenset(destroy)
        self.update = frozenset(update)
        self.instance_actions = _frozen({name: _frozen(methods)
                                         for name, methods in (instance_actions or {}).items()})
        self.tag_methods = _frozen(tag_methods or {})
        self.backup_methods = _frozen(backup_methods or {})
        self.instance_methods = _frozen(instance_methods or {})
        self.collection_actions = _frozen({resource_type: _frozen(methods)
                                           for resource_type, methods in (collection_actions or {}).items()})
        self.path_segments = _frozen(path_segments or {})

    def __setattr__(self, name, value):
        if name in self.__dict__:
            raise AttributeError('{} is immutable'.format(self.__class__.__name__))
        super(CapabilityTable, self).__setattr__(name, value)

    def can_create(self, resource_type):
        return resource_type in self.create

    def can_destroy(self, resource_type):
        return resource_type in self.destroy

    def can_update(self, resource_type):
        return resource_type in self.update

    def path_segment(self, method_name):
        return self.path_segments.get(method_name, method_name)

    def __repr__(self):
        return '{}(create={}, destroy={}, update={})'.format(self.__class__.__name__,
                                                             sorted(self.create),
                                                             sorted(self.destroy),
                                                             sorted(self.update))


DEFAULT_CAPABILITIES = CapabilityTable(
    create=('deployment', 'server_array', 'server', 'ssh_key', 'volume', 'volume_snapshot', 'volume_attachment'),
    destroy=('deployment', 'server_array', 'server', 'ssh_key', 'volume', 'volume_snapshot', 'volume_attachment',
             'backup'),
    update=('deployment', 'instance', 'server_array', 'server', 'backup'),
    instance_actions={
        'clouds': {
            'volumes': GET,
            'volume_types': GET,
            'volume_attachments': GET,
            'volume_snapshots': GET,
            'instances': DUMMY
        }
    },
    tag_methods={
        'by_tag': POST,
        'by_resource': POST,
        'multi_add': POST,
        'multi_delete': POST
    },
    backup_methods={
        'create': POST,
        'cleanup': POST
    },
    instance_methods={
        'live_tasks': GET
    },
    collection_actions={
        'instance': {
            'multi_terminate': POST,
            'multi_run_executable': POST
        },
        'input': {
            'multi_update': PUT
        }
    },
    path_segments={
        'create': None,
        'live_tasks': 'live/tasks'
    }
)
