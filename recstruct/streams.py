import io
import os
import logging

from .exceptions import UnpackException


logger = logging.getLogger(__name__)


class Stream(object):
    '''This is a simple wrapper around bytes/path/file object to
    uniform its properties: mainly we need a read() that fails loudly
    when the data is not enough and to know whether we own the underlying
    file (and so we have to close it).'''
    def __init__(self, obj, flags='r'):
        '''Here we normalize the object in order to be accessed as a normal file object'''
        self._type = type(obj)
        self.flags = flags
        self.obj = obj
        self.owned = False

        if isinstance(obj, os.PathLike):
            self.obj = os.fspath(obj)

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, self.init_file)

        init_method()

    def __getattr__(self, name):
        return getattr(self.obj, name)

    def __repr__(self):
        return '<%s(%s, flags=%r)>' % (self.__class__.__name__, self._type.__name__, self.flags)

    def init_str(self):
        '''We think this is a path'''
        logger.debug('opening path \'%s\' with flags \'%s\'' % (self.obj, self.flags))
        self.obj = open(self.obj, '%sb' % self.flags)
        self.owned = True

    def init_bytes(self):
        '''We think these are raw bytes'''
        if self.flags != 'r':
            raise ValueError('raw bytes can be used only for reading')
        self.obj = io.BytesIO(self.obj)
        self.owned = True

    def init_bytearray(self):
        self.obj = bytes(self.obj)
        self.init_bytes()

    def init_file(self):
        '''Anything else must behave like a binary file object'''
        method = 'read' if self.flags == 'r' else 'write'
        if not hasattr(self.obj, method):
            raise ValueError('\'%s\' is the wrong kind of object to %s' % (self._type.__name__, method))

    def read_exactly(self, size, chain=None):
        '''Read "size" bytes or raise UnpackException.'''
        data = self.obj.read(size)
        if len(data) != size:
            raise UnpackException(
                chain=chain,
                message=f'expected {size} bytes, found {len(data)}',
            )

        return data

    def skip(self, size):
        self.read_exactly(size)

    def write(self, data):
        return self.obj.write(data)

    def close(self):
        '''Flush always, close only what we opened ourselves.'''
        if self.flags != 'r':
            self.obj.flush()

        if self.owned:
            logger.debug('closing %r' % self)
            self.obj.close()
