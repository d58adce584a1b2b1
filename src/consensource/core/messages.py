"""
Wire messages understood by the ledger REST gateway.

The ledger speaks protocol buffers. The message layouts are registered in a
private descriptor pool at import time so that no generated code or .proto
compilation step is needed; field numbers match the ledger's definitions.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

_PACKAGE = "consensource.ledger"

_Field = descriptor_pb2.FieldDescriptorProto

_STRING = _Field.TYPE_STRING
_BYTES = _Field.TYPE_BYTES
_BOOL = _Field.TYPE_BOOL
_MESSAGE = _Field.TYPE_MESSAGE

# (name, number, type, repeated, message type name)
_LAYOUTS = {
    "TransactionHeader": [
        ("batcher_public_key", 1, _STRING, False, None),
        ("dependencies", 2, _STRING, True, None),
        ("family_name", 3, _STRING, False, None),
        ("family_version", 4, _STRING, False, None),
        ("inputs", 5, _STRING, True, None),
        ("nonce", 6, _STRING, False, None),
        ("outputs", 7, _STRING, True, None),
        ("payload_sha512", 9, _STRING, False, None),
        ("signer_public_key", 10, _STRING, False, None),
    ],
    "Transaction": [
        ("header", 1, _BYTES, False, None),
        ("header_signature", 2, _STRING, False, None),
        ("payload", 3, _BYTES, False, None),
    ],
    "BatchHeader": [
        ("signer_public_key", 1, _STRING, False, None),
        ("transaction_ids", 2, _STRING, True, None),
    ],
    "Batch": [
        ("header", 1, _BYTES, False, None),
        ("header_signature", 2, _STRING, False, None),
        ("transactions", 3, _MESSAGE, True, "Transaction"),
        ("trace", 4, _BOOL, False, None),
    ],
    "BatchList": [
        ("batches", 1, _MESSAGE, True, "Batch"),
    ],
}


def _build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto()
    file_proto.name = "consensource/ledger_messages.proto"
    file_proto.package = _PACKAGE
    file_proto.syntax = "proto3"

    for message_name, fields in _LAYOUTS.items():
        message = file_proto.message_type.add()
        message.name = message_name
        for name, number, field_type, repeated, type_name in fields:
            field = message.field.add()
            field.name = name
            field.number = number
            field.type = field_type
            field.label = _Field.LABEL_REPEATED if repeated else _Field.LABEL_OPTIONAL
            if type_name:
                field.type_name = f".{_PACKAGE}.{type_name}"

    return file_proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file_descriptor().SerializeToString())


def _message_class(name: str):
    return message_factory.GetMessageClass(_pool.FindMessageTypeByName(f"{_PACKAGE}.{name}"))


TransactionHeaderMessage = _message_class("TransactionHeader")
TransactionMessage = _message_class("Transaction")
BatchHeaderMessage = _message_class("BatchHeader")
BatchMessage = _message_class("Batch")
BatchListMessage = _message_class("BatchList")
