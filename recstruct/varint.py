'''
Variable length encoding of integers.

Signed integers are first mapped to unsigned ones with the zig-zag encoding,
so that small magnitudes (positive or negative) stay small

    0 -> 0, -1 -> 1, 1 -> 2, -2 -> 3, ...

then the unsigned value is split in groups of 7 bits, the least significant
group first; every byte but the last has the high bit set.
'''
import logging

from bitstring import BitArray

from .exceptions import UnpackException


logger = logging.getLogger(__name__)

GROUP_BITS = 7
CONTINUATION = 0x80


def zigzag_encode(value: int) -> int:
    return (value << 1) if value >= 0 else ((-value) << 1) - 1


def zigzag_decode(value: int) -> int:
    return (value >> 1) ^ -(value & 1)


def max_varint_size(bits: int) -> int:
    '''Number of bytes needed in the worst case for an integer of the given width.'''
    return -(-bits // GROUP_BITS)


def encode_varint(value: int) -> bytes:
    if value < 0:
        raise ValueError(f'varint encodes unsigned values only, got {value}')

    n_groups = max_varint_size(max(value.bit_length(), 1))
    bits = BitArray(uint=value, length=n_groups * GROUP_BITS)

    # cut() yields the most significant group first
    groups = [_.uint for _ in bits.cut(GROUP_BITS)][::-1]

    data = bytearray(CONTINUATION | _ for _ in groups[:-1])
    data.append(groups[-1])

    return bytes(data)


def read_varint(stream, bits=64) -> int:
    '''Read an unsigned varint from the stream: at most the number of bytes
    needed to represent an integer of "bits" width are consumed.'''
    limit = max_varint_size(bits)
    groups = []

    while True:
        if len(groups) == limit:
            raise UnpackException(message=f'varint longer than {limit} bytes')

        b = stream.read(1)
        if len(b) == 0:
            raise UnpackException(message='unexpected end of data while reading a varint')

        byte = b[0]
        groups.append(BitArray(uint=byte & ~CONTINUATION, length=GROUP_BITS))

        if not byte & CONTINUATION:
            break

    return BitArray().join(groups[::-1]).uint


def encode_zigzag(value: int) -> bytes:
    return encode_varint(zigzag_encode(value))


def read_zigzag(stream, bits=64) -> int:
    return zigzag_decode(read_varint(stream, bits=bits))
