from collections.abc import Mapping


def merge_params(args, kwargs):
    """
    Combines the arguments of an accessor call into one parameter dict. Accessors accept an optional positional
    mapping, keyword arguments, or both; keyword arguments win.
    """
    if len(args) > 1:
        raise TypeError('expected at most one positional params mapping, got {}'.format(len(args)))

    params = {}
    if args and args[0] is not None:
        if not isinstance(args[0], Mapping):
            raise TypeError('params must be a mapping, not {}'.format(type(args[0]).__name__))
        params.update(args[0])
    params.update(kwargs)
    return params


def add_id_to_path(path, params):
    """
    Removes ``id`` from ``params`` and appends it to ``path`` as a path segment.
    """
    if 'id' in params:
        path = '{}/{}'.format(path, params.pop('id'))
    return path


def insert_in_path(path, term):
    """
    Inserts ``term`` as the last path segment, before any query string: ``/a/b?x=1`` becomes ``/a/b/term?x=1``.
    """
    if '?' in path:
        return path.replace('?', '/{}?'.format(term), 1)
    return '{}/{}'.format(path, term)


def join_path(path, segment):
    if segment is None:
        return path
    return '{}/{}'.format(path, segment)


def flatten_params(params, prefix=None):
    """
    Flattens nested parameters into form fields the way Rails-style APIs read them::

        {'deployment': {'name': 'x'}, 'ids': [1, 2]}

    becomes ``deployment[name]=x``, ``ids[]=1``, ``ids[]=2``.

    :return: a list of ``(name, value)`` tuples
    """
    fields = []
    for key, value in params.items():
        name = key if prefix is None else '{}[{}]'.format(prefix, key)

        if isinstance(value, Mapping):
            fields.extend(flatten_params(value, name))
        elif isinstance(value, (list, tuple)):
            for item in value:
                if isinstance(item, Mapping):
                    fields.extend(flatten_params(item, '{}[]'.format(name)))
                else:
                    fields.append(('{}[]'.format(name), item))
        elif value is not None:
            fields.append((name, value))
    return fields


class AccessorMixin(object):
    """
    Exposes the callables in :attr:`accessors` as attributes. Shared by the client, resources, resource
    collections and dummy resources.
    """

    def _lookup(self, name):
        accessors = self.__dict__.get('accessors')
        if accessors is not None and name in accessors:
            return accessors[name]
        raise KeyError(name)

    def __getattr__(self, name):
        if name.startswith('__'):
            raise AttributeError(name)
        try:
            return self._lookup(name)
        except KeyError:
            raise AttributeError("'{}' object has no attribute '{}'".format(self.__class__.__name__, name))

    def __dir__(self):
        return sorted(set(super(AccessorMixin, self).__dir__()) | set(self.api_methods()))

    def api_methods(self):
        """
        Returns the names of all API methods available on this object.
        """
        return list(self.__dict__.get('accessors', {}).keys())
