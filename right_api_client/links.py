from collections import OrderedDict

from .capabilities import GET, POST, PUT, DELETE
from .exceptions import MalformedResponseError
from .utils import merge_params

TAGS = 'tags'
BACKUPS = 'backups'


class Accessor(object):
    """
    A callable bound to one relation of a resource.

    .. attribute:: rel

        The relation (or method name) this accessor is bound to.

    .. attribute:: method

        HTTP method issued when the accessor is called.

    """
    method = GET

    def __init__(self, factory, rel):
        self.factory = factory
        self.rel = rel

    @property
    def dispatcher(self):
        return self.factory.dispatcher

    def __call__(self, *args, **kwargs):
        raise NotImplementedError()

    def __repr__(self):
        return '<{} {} {}>'.format(self.__class__.__name__, self.method, self.rel)


class LinkAccessor(Accessor):
    """
    Follows every href of a relation with a GET. Returns one resource when the relation has a single href, and a
    list of resources in link order otherwise.
    """

    def __init__(self, factory, rel, hrefs):
        super(LinkAccessor, self).__init__(factory, rel)
        self.hrefs = tuple(hrefs)

    @property
    def href(self):
        return self.hrefs[0]

    def __call__(self, *args, **kwargs):
        params = merge_params(args, kwargs)
        if len(self.hrefs) == 1:
            return self.factory.fetch(self.href, params)
        return [self.factory.fetch(href, params) for href in self.hrefs]

    def __repr__(self):
        return '<{} {} {} {}>'.format(self.__class__.__name__, self.method, self.rel, list(self.hrefs))


class DummyAccessor(Accessor):
    """
    Returns a :class:`resource.DummyResource` for a collection the API does not allow listing.

    :param str path: base path of the dummy resource
    :param dict methods: dummy methods mapped to their HTTP method
    :param bool with_id: whether an ``id`` parameter is appended to the base path
    """
    method = None

    def __init__(self, factory, rel, path, methods, with_id=False):
        super(DummyAccessor, self).__init__(factory, rel)
        self.href = path
        self.methods = methods
        self.with_id = with_id

    def __call__(self, *args, **kwargs):
        from .resource import DummyResource
        params = merge_params(args, kwargs)

        path = self.href
        if self.with_id and 'id' in params:
            path = '{}/{}'.format(path, params.pop('id'))
        return DummyResource(self.factory, path, self.methods)

    def __repr__(self):
        return '<{} {} {}>'.format(self.__class__.__name__, self.rel, self.href)


class BackupsAccessor(LinkAccessor):
    """
    Listing backups needs parameters (such as ``lineage``), so a call without any returns a
    :class:`resource.DummyResource` with the backup collection methods instead of issuing a GET.
    """

    def __init__(self, factory, rel, href):
        super(BackupsAccessor, self).__init__(factory, rel, (href,))

    def __call__(self, *args, **kwargs):
        from .resource import DummyResource
        if args or kwargs:
            return self.factory.fetch(self.href, merge_params(args, kwargs))
        return DummyResource(self.factory, self.href, self.factory.capabilities.backup_methods)


class VerbAccessor(Accessor):
    """
    Issues a single request against a path derived from a resource.

    :param str method: one of ``'GET'``, ``'POST'``, ``'PUT'`` or ``'DELETE'``
    :param path: the request path, or a callable returning it when the accessor is called
    :param bool takes_params: whether call arguments are sent as request parameters
    """

    def __init__(self, factory, rel, method, path, takes_params=True):
        super(VerbAccessor, self).__init__(factory, rel)
        self.method = method
        self._path = path
        self.takes_params = takes_params

    @property
    def href(self):
        if callable(self._path):
            return self._path()
        return self._path

    def __call__(self, *args, **kwargs):
        params = merge_params(args, kwargs)
        if params and not self.takes_params:
            raise TypeError('{}() takes no parameters'.format(self.rel))

        href = self.href
        if href is None:
            raise MalformedResponseError('Cannot call {}(): the resource has no "self" link'.format(self.rel))

        if self.method == GET:
            return self.factory.fetch(href, params)
        elif self.method == POST:
            return self.dispatcher.post(href, params)
        elif self.method == PUT:
            return self.dispatcher.put(href, params)
        elif self.method == DELETE:
            return self.dispatcher.delete(href, params)
        raise ValueError('Unsupported method: {}'.format(self.method))

    def __repr__(self):
        return '<{} {} {}>'.format(self.__class__.__name__, self.method, self.rel)


class EmbeddedAccessor(Accessor):
    """
    Builds a child resource from data embedded in its parent's response, without a request.
    """
    method = None

    def __init__(self, factory, rel, payload, resource_type, href):
        super(EmbeddedAccessor, self).__init__(factory, rel)
        self.payload = payload
        self.resource_type = resource_type
        self.href = href

    def __call__(self):
        return self.factory.process(self.payload, self.resource_type, self.href)

    def __repr__(self):
        return '<{} {} {}>'.format(self.__class__.__name__, self.rel, self.href)


def group_links(links):
    """
    Groups the hrefs of ``links`` by relation, keeping the first-seen order of relations and the link order
    within each relation.
    """
    rels = OrderedDict()
    for link in links:
        rels.setdefault(link['rel'], []).append(link['href'])
    return rels


class LinkResolver(object):
    """
    Turns hypermedia links into accessors.

    :param ResourceFactory factory: used by the accessors to wrap responses into resources
    """

    def __init__(self, factory):
        self.factory = factory

    def accessor(self, rel, hrefs):
        if rel == TAGS:
            # the API has no GET on the tags collection
            return DummyAccessor(self.factory, rel, hrefs[0], self.factory.capabilities.tag_methods)
        if rel == BACKUPS:
            return BackupsAccessor(self.factory, rel, hrefs[0])
        return LinkAccessor(self.factory, rel, hrefs)

    def bind(self, links, associations=None):
        """
        :param list links: ``{"rel", "href"}`` dicts
        :param set associations: if given, receives the name of every bound relation
        :return: an ordered dict mapping each distinct relation to its accessor
        """
        accessors = OrderedDict()
        for rel, hrefs in group_links(links).items():
            if associations is not None:
                associations.add(rel)
            accessors[rel] = self.accessor(rel, hrefs)
        return accessors
