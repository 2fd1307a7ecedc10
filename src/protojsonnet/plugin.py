"""Entry point used by protoc as ``protoc-gen-jsonnet``."""

import sys
from typing import BinaryIO

from google.protobuf.compiler import plugin_pb2

from protojsonnet import log
from protojsonnet.codegen import CodeGenerator
from protojsonnet.model import parse_plugin_parameter


def run(stdin: BinaryIO, argv: list[str]) -> plugin_pb2.CodeGeneratorResponse:
    """
    Read a code generation request and produce the response.

    Args:
        stdin: Stream carrying the serialized CodeGeneratorRequest
        argv: Command line arguments, excluding the program name

    Returns:
        The response with the generated files

    Raises:
        ValueError: If arguments are passed or the parameter string is invalid
    """
    if argv:
        raise ValueError(f"unknown argument {argv[0]!r} (this program should be run by protoc, not directly)")
    request = plugin_pb2.CodeGeneratorRequest()
    request.ParseFromString(stdin.read())
    log.debug(f"Received request for {len(request.file_to_generate)} files")
    options = parse_plugin_parameter(request.parameter)
    return CodeGenerator(options).generate(request)


def write_response(response: plugin_pb2.CodeGeneratorResponse, stdout: BinaryIO) -> None:
    stdout.write(response.SerializeToString())
    stdout.flush()


def main() -> None:
    try:
        response = run(sys.stdin.buffer, sys.argv[1:])
    except Exception as e:
        log.error(f"Generation failed: {e}")
        response = plugin_pb2.CodeGeneratorResponse(error=str(e))
    try:
        write_response(response, sys.stdout.buffer)
    except OSError as e:
        log.critical(f"Unable to write response: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
