"""
Runtime RPC Schema

Loads lnd's `.proto` service definition at startup with grpcio-tools instead of
shipping generated modules, and exposes the service's unary methods as a
dispatch table keyed by method name.
"""

import os
import sys
import logging
from types import ModuleType
from typing import Optional, Dict, Any, List, Union
from dataclasses import dataclass, field

import grpc
from google.protobuf import descriptor_pb2, message_factory
from google.protobuf.descriptor import MethodDescriptor, ServiceDescriptor
from google.protobuf.message import Message

from lightning_errors import LightningConfigurationError

logger = logging.getLogger(__name__)


def _is_unary(method: MethodDescriptor) -> bool:
    method_proto = descriptor_pb2.MethodDescriptorProto()
    method.CopyToProto(method_proto)
    return not (method_proto.client_streaming or method_proto.server_streaming)


def _lower_camel(name: str) -> str:
    return name[:1].lower() + name[1:]


@dataclass
class LightningSchema:
    """Generated proto and service modules for one gRPC service"""
    protos: ModuleType
    services: ModuleType
    service_name: str = "Lightning"
    _methods: Dict[str, MethodDescriptor] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        service = self.service_descriptor
        for method in service.methods:
            self._methods[method.name] = method
            self._methods.setdefault(_lower_camel(method.name), method)

    @classmethod
    def load(cls, proto_path: str, service_name: str = "Lightning") -> "LightningSchema":
        """Compile and import `proto_path`, failing with a configuration error"""
        if not proto_path or not os.path.exists(proto_path):
            logger.error(f"RPC proto file {proto_path} not found")
            raise LightningConfigurationError(f"RPC proto file not found: {proto_path}")

        # protoc resolves the file and its imports against sys.path
        proto_dir, proto_file = os.path.split(os.path.abspath(proto_path))
        added = proto_dir not in sys.path
        if added:
            sys.path.append(proto_dir)
        try:
            protos, services = grpc.protos_and_services(proto_file)
        except Exception as e:
            logger.error(f"Failed to load RPC proto {proto_path}: {e}")
            raise LightningConfigurationError(f"Unable to load RPC proto {proto_path}: {e}") from e
        finally:
            if added:
                sys.path.remove(proto_dir)

        if service_name not in protos.DESCRIPTOR.services_by_name:
            raise LightningConfigurationError(f"Service {service_name} not defined in {proto_path}")

        schema = cls(protos=protos, services=services, service_name=service_name)
        logger.info(f"Loaded {service_name} RPC schema from {proto_path} ({len(schema.method_names)} unary methods)")
        return schema

    @property
    def service_descriptor(self) -> ServiceDescriptor:
        return self.protos.DESCRIPTOR.services_by_name[self.service_name]

    @property
    def stub_class(self):
        return getattr(self.services, f"{self.service_name}Stub")

    @property
    def method_names(self) -> List[str]:
        return [method.name for method in self.service_descriptor.methods if _is_unary(method)]

    def resolve(self, method: str) -> MethodDescriptor:
        """Look up a unary method by its proto name or lowerCamel alias"""
        descriptor = self._methods.get(method)
        if descriptor is None:
            raise ValueError(f"Unknown {self.service_name} method: {method}")
        if not _is_unary(descriptor):
            raise ValueError(f"Streaming method {descriptor.name} cannot be invoked through call()")
        return descriptor

    def request_class(self, descriptor: MethodDescriptor):
        input_type = descriptor.input_type
        message_class = getattr(self.protos, input_type.name, None)
        if message_class is None or message_class.DESCRIPTOR.full_name != input_type.full_name:
            message_class = message_factory.GetMessageClass(input_type)
        return message_class

    def build_request(self, descriptor: MethodDescriptor,
                      parameters: Optional[Union[Dict[str, Any], Message]] = None) -> Message:
        """Turn call parameters into the method's request message"""
        message_class = self.request_class(descriptor)

        if isinstance(parameters, Message):
            if parameters.DESCRIPTOR.full_name != descriptor.input_type.full_name:
                raise TypeError(
                    f"{descriptor.name} expects {descriptor.input_type.full_name}, "
                    f"got {parameters.DESCRIPTOR.full_name}"
                )
            return parameters

        return message_class(**(parameters or {}))
