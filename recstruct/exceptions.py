class RecstructException(Exception):
    '''Base class to extend in order to throw exception in recstruct.

    It takes the chain of the fields that caused the exception (the innermost
    last) and an optional message describing what went wrong.
    '''

    def __init__(self, chain=None, message=None):
        self.chain = chain if chain is not None else []
        self.message = message
        super().__init__(message)

    def __str__(self):
        msg = self.message or self.__class__.__name__
        if self.chain:
            msg = '%s (at %s)' % (msg, '.'.join(str(_) for _ in self.chain))
        return msg


class SchemaError(RecstructException):
    '''The schema description is malformed.'''
    pass


class SchemaMismatchError(RecstructException):
    '''A record or a projection doesn't agree with the schema it's used with.'''
    pass


class EndOfStreamError(RecstructException):
    pass


class UnpackException(RecstructException):
    '''The binary data is truncated or corrupted.'''
    pass


class MagicException(UnpackException):
    pass
