from blinker import Namespace

_right_api = Namespace()

request_started = _right_api.signal('request-started')

request_finished = _right_api.signal('request-finished')

session_expired = _right_api.signal('session-expired')

authenticated = _right_api.signal('authenticated')
