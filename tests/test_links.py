from flask import request

from right_api_client.links import (BackupsAccessor, DummyAccessor, LinkAccessor, LinkResolver, group_links)
from right_api_client.resource import DummyResource, Resource
from tests import BaseTestCase, respond


class LinkResolverTestCase(BaseTestCase):

    def setUp(self):
        super(LinkResolverTestCase, self).setUp()
        self.links = [
            {"rel": "deployment", "href": "/api/deployments/1"},
            {"rel": "inputs", "href": "/api/servers/1/inputs"},
            {"rel": "alert_specs", "href": "/api/alert_specs/2"},
            {"rel": "alert_specs", "href": "/api/alert_specs/1"},
            {"rel": "alert_specs", "href": "/api/alert_specs/3"},
            {"rel": "tags", "href": "/api/tags"},
            {"rel": "backups", "href": "/api/backups"}
        ]

    def test_group_links(self):
        self.assertEqual([
            ("deployment", ["/api/deployments/1"]),
            ("inputs", ["/api/servers/1/inputs"]),
            ("alert_specs", ["/api/alert_specs/2", "/api/alert_specs/1", "/api/alert_specs/3"]),
            ("tags", ["/api/tags"]),
            ("backups", ["/api/backups"])
        ], list(group_links(self.links).items()))

    def test_bind(self):
        client = self.create_client()
        resolver = LinkResolver(client.factory)
        associations = set()

        accessors = resolver.bind(self.links, associations)

        self.assertEqual(['deployment', 'inputs', 'alert_specs', 'tags', 'backups'], list(accessors.keys()))
        self.assertEqual({'deployment', 'inputs', 'alert_specs', 'tags', 'backups'}, associations)
        self.assertIsInstance(accessors['deployment'], LinkAccessor)
        self.assertEqual(('/api/alert_specs/2', '/api/alert_specs/1', '/api/alert_specs/3'),
                         accessors['alert_specs'].hrefs)
        self.assertIsInstance(accessors['tags'], DummyAccessor)
        self.assertIsInstance(accessors['backups'], BackupsAccessor)
        self.assertEqual("<LinkAccessor GET deployment ['/api/deployments/1']>", repr(accessors['deployment']))

    def test_bind_without_associations(self):
        client = self.create_client()
        accessors = LinkResolver(client.factory).bind(self.links)
        self.assertEqual(5, len(accessors))

    def test_multiple_hrefs_in_link_order(self):
        @self.route('/api/alert_specs/<int:id>')
        def alert_spec(id):
            return respond({"id": id, "links": [{"rel": "self", "href": "/api/alert_specs/{}".format(id)}]},
                           'alert_spec')

        client = self.create_client()
        accessors = LinkResolver(client.factory).bind(self.links)

        alert_specs = accessors['alert_specs']()

        self.assertIsInstance(alert_specs, list)
        self.assertEqual([2, 1, 3], [spec.id for spec in alert_specs])
        self.assertEqual(['/api/alert_specs/2', '/api/alert_specs/1', '/api/alert_specs/3'],
                         [path for method, path in self.calls if path.startswith('/api/alert_specs')])

    def test_single_href_forwards_params(self):
        args = {}

        @self.route('/api/servers/1/inputs')
        def inputs():
            args.update(request.args.to_dict())
            return respond([{"name": "FOO", "value": "text:bar"}], 'input')

        client = self.create_client()
        accessors = LinkResolver(client.factory).bind(self.links)

        inputs = accessors['inputs']({'view': 'default'}, filters=['name==FOO'])

        self.assertEqual('FOO', inputs[0].name)
        self.assertEqual({'view': 'default', 'filter[]': 'name==FOO'}, args)

    def test_tags(self):
        forms = []

        @self.route('/api/tags/by_tag', methods=('POST',))
        def by_tag():
            forms.append(request.form.to_dict(flat=False))
            return respond([{"tags": [{"name": "role:web"}], "links": [
                {"rel": "resource", "href": "/api/servers/1"}
            ]}], 'resource_tag')

        client = self.create_client()
        tags = client.tags()

        self.assertIsInstance(tags, DummyResource)
        self.assertEqual(['by_tag', 'by_resource', 'multi_add', 'multi_delete'], tags.api_methods())

        result = tags.by_tag(resource_type='servers', tags=['role:web'])

        self.assertEqual([('POST', '/api/tags/by_tag')], self.calls_to('/api/tags/by_tag'))
        self.assertEqual([{'resource_type': ['servers'], 'tags[]': ['role:web']}], forms)
        self.assertEqual({'resource'}, result[0].associations)
        self.assertEqual([], self.calls_to('/api/tags', 'GET'))

    def test_backups_without_params(self):
        self.route('/api/backups', methods=('POST',))(
            lambda: respond({}, status=201, headers={'Location': '/api/backups/9'}))
        self.route('/api/backups/cleanup', methods=('POST',))(lambda: ('', 204))
        self.route('/api/backups/9')(lambda: respond({"name": "nightly", "links": [
            {"rel": "self", "href": "/api/backups/9"}
        ]}, 'backup'))

        client = self.create_client()
        backups = client.backups()

        self.assertIsInstance(backups, DummyResource)
        self.assertEqual(['create', 'cleanup'], backups.api_methods())
        self.assertEqual([], self.calls_to('/api/backups', 'GET'))

        backup = backups.create(backup={'lineage': 'x'})
        self.assertEqual('nightly', backup.name)
        self.assertEqual('/api/backups/9', backup.href)

        self.assertEqual(204, backups.cleanup(lineage='x').status_code)
        self.assertEqual(1, len(self.calls_to('/api/backups/cleanup', 'POST')))

    def test_backups_with_empty_params(self):
        self.route('/api/backups')(lambda: respond([], 'backup'))
        client = self.create_client()

        backups = client.backups({})

        self.assertNotIsInstance(backups, DummyResource)
        self.assertEqual([], list(backups))
        self.assertEqual([('GET', '/api/backups')], self.calls_to('/api/backups'))

    def test_backups_with_params(self):
        self.route('/api/backups')(lambda: respond([{"name": "nightly", "links": [
            {"rel": "self", "href": "/api/backups/9"}
        ]}], 'backup'))

        client = self.create_client()
        backups = client.backups(lineage='x')

        self.assertEqual([('GET', '/api/backups?lineage=x')], self.calls_to('/api/backups?lineage=x'))
        self.assertEqual('nightly', backups[0].name)
        self.assertIsInstance(backups[0], Resource)
