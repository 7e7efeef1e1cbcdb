class RightApiError(Exception):
    """
    Base class for every error raised by the client.
    """

    def as_dict(self):
        return {
            'error': self.__class__.__name__,
            'message': str(self)
        }


class ConfigurationError(RightApiError):
    pass


class AuthenticationError(RightApiError):
    """
    Raised when a login is rejected, when the session cannot be re-established, or when a request is still
    forbidden after re-authenticating.

    :param str message:
    :param int status_code: HTTP status of the failed response, if any
    :param str body: body of the failed response, if any
    """

    def __init__(self, message, status_code=None, body=None):
        super(AuthenticationError, self).__init__(message)
        self.status_code = status_code
        self.body = body

    def as_dict(self):
        dct = super(AuthenticationError, self).as_dict()
        if self.status_code is not None:
            dct['status'] = self.status_code
        return dct


class UnexpectedStatusError(RightApiError):
    """
    Raised when the API answers with a status code outside the contract of the request method.

    :param int status_code:
    :param str body:
    :param str method: HTTP method of the request
    :param str path: request path, including any query string
    """

    def __init__(self, status_code, body, method=None, path=None):
        super(UnexpectedStatusError, self).__init__(
            'Unexpected response {} to {} {}: {}'.format(status_code, method, path, body))
        self.status_code = status_code
        self.body = body
        self.method = method
        self.path = path

    def as_dict(self):
        dct = super(UnexpectedStatusError, self).as_dict()
        dct.update({
            'status': self.status_code,
            'method': self.method,
            'path': self.path
        })
        return dct


class MalformedResponseError(RightApiError):

    def __init__(self, message, errors=None):
        super(MalformedResponseError, self).__init__(message)
        self.errors = list(errors or ())

    def as_dict(self):
        dct = super(MalformedResponseError, self).as_dict()
        if self.errors:
            dct['errors'] = [{
                'validationOf': {error.validator: error.validator_value},
                'path': tuple(error.absolute_path)
            } for error in self.errors]
        return dct
