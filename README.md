# cborattr

Decode CBOR maps into named, typed attributes, encode attribute lists back
into CBOR maps, and answer chunked file upload and download requests built
on top of them.

## Installing

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## What is inside

- `cborattr.cbor`: a compact CBOR codec with no outside dependencies.
  `decode(data)` parses the first data item of `data` into a `CborItem`
  (a `CborType` plus its value; maps keep their keys and values as one flat
  list in wire order) and ignores trailing bytes. `Encoder` writes nulls,
  booleans, integers, half floats (given as 16-bit patterns), floats,
  doubles, byte and text strings, and maps and arrays of definite or
  indefinite length (`begin_map`, `begin_array`, `end`); `getvalue()`
  returns the bytes written so far. Failures raise `CborError`, whose
  `kind` is a `CborErrorKind`.
- `cborattr.attrs`: the descriptions. `CborAttrType` names the supported
  value kinds, and `CborAttrType.matches(cbor_type)` tells whether a decoded
  item may fill an attribute of that kind. `Attr` describes one expected key
  of a map: its name (None for an item without a text key), type, default,
  `max_len` for strings, `nodefault`, and an `ArraySpec` or member list for
  arrays and objects. `ArraySpec` gives the element type, `maxlen`, an
  optional `store_len` for text elements and a `subtype` for elements that
  are objects. `OutValue` and `OutAttr` describe values and keys to write.
- `cborattr.decode`: `read_flat_attrs(data, attrs)` decodes bytes and reads
  the described attributes into a dict keyed by attribute name;
  `read_object(item, attrs)` and `read_array(item, spec)` work on an
  already decoded item. Keys that no attribute describes are skipped.
  Scalar attributes without `nodefault` take their default (zero of their
  type if none is given) when missing. Failures raise `AttrDecodeError`,
  whose `partial` holds what was read anyway; an array longer than its
  `maxlen` keeps what fits and reports `DATA_TOO_LARGE`.
- `cborattr.encode`: `encode_object(attrs)` turns a list of `OutAttr` into
  the bytes of an indefinite-length CBOR map, leaving out attributes with
  `omit` set. `write_object` and `write_value` write into an existing
  `Encoder`. A key without a name, or a value of a type that cannot be
  written, raises `AttrEncodeError`.
- `cborattr.fs_backend`: file storage behind the file commands.
  `FileBackend` is the interface (`filelen`, `read`, `write`, where a write
  at offset 0 replaces the file), `UnsupportedBackend` refuses every call,
  and `DirectoryBackend(root)` keeps files under a directory and rejects
  paths outside it. Failures raise `MgmtError` carrying an `MgmtErr` code.
- `cborattr.fs_mgmt`: `FsManager(backend, config)` answers `download` and
  `upload` requests, given as bytes or a decoded `CborItem`, and returns the
  response fields as a dict. A download returns `off`, `data` and `rc`, and
  `len` as well when `off` is 0. An upload starts at offset 0 with the total
  `len`, continues at the offset reached so far, and returns `rc` and `off`;
  a chunk at the wrong offset is dropped and the expected offset returned
  with `rc` set to `EINVAL`. Bad requests raise `MgmtError`. `FsMgmtConfig`
  holds the chunk and path sizes, and
  `dl_chunk_size(buf_size, max_offset_len, requested)` works out how large a
  download chunk may be for a given transport buffer.

## Example

```python
from cborattr.attrs import Attr, CborAttrType, OutAttr, OutValue
from cborattr.decode import read_flat_attrs
from cborattr.encode import encode_object

data = encode_object([
    OutAttr("name", OutValue(CborAttrType.TEXT_STRING, "config.txt")),
    OutAttr("off", OutValue(CborAttrType.UNSIGNED_INTEGER, 0)),
])

values = read_flat_attrs(data, [
    Attr("name", CborAttrType.TEXT_STRING, max_len=65),
    Attr("off", CborAttrType.UNSIGNED_INTEGER, nodefault=True),
])
print(values["name"], values["off"])
```

## What it does not do

There is no command-line program, server or transport here. `FsManager`
handles one request at a time and hands back the response fields as a
dict; receiving requests, framing them, encoding the responses and sending
them back are left to the application that uses it.