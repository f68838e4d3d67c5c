"""
Image Editor MCP Server

A Model Context Protocol (MCP) server that edits images in a single directory.
Supports brightness adjustment, cropping, and compression. Serves MCP over
stdio by default, or over HTTP with --http.
"""

import argparse
import json
import sys
from typing import Any, Dict, Optional

from flask import Flask, request, jsonify
from flask_cors import CORS

from . import __version__
from .config import load_config
from .errors import StartupError
from .image_editor import ImageEditor

# MCP Protocol version
MCP_VERSION = "2024-11-05"

# Server info
SERVER_INFO = {
    "name": "image-editor-mcp",
    "version": __version__
}

# Tool definitions
TOOLS = [
    {
        "name": "adjust_brightness",
        "title": "Adjust image brightness",
        "description": "Make an image in the image directory brighter or darker. The file is edited in place.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "fileName": {
                    "type": "string",
                    "description": "Image file name relative to the image directory, e.g. 'photo.jpg'"
                },
                "level": {
                    "type": "string",
                    "enum": ["brighter", "darker"],
                    "description": "'brighter' or 'darker'"
                }
            },
            "required": ["fileName", "level"]
        }
    },
    {
        "name": "crop_image",
        "title": "Crop image",
        "description": "Crop an image in the image directory to the given rectangle. The file is edited in place.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "fileName": {
                    "type": "string",
                    "description": "Image file name relative to the image directory, e.g. 'portrait.png'"
                },
                "left": {"type": "integer", "description": "X coordinate of the top-left corner"},
                "top": {"type": "integer", "description": "Y coordinate of the top-left corner"},
                "width": {"type": "integer", "minimum": 1, "description": "Width of the crop area"},
                "height": {"type": "integer", "minimum": 1, "description": "Height of the crop area"}
            },
            "required": ["fileName", "left", "top", "width", "height"]
        }
    },
    {
        "name": "compress_image",
        "title": "Compress image",
        "description": "Re-encode a JPEG, PNG or WebP image at a lower quality to reduce its file size. "
                       "The file is edited in place.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "fileName": {
                    "type": "string",
                    "description": "Image file name relative to the image directory, e.g. 'background.jpg'"
                },
                "quality": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": 100,
                    "description": "Compression quality (1-100). Lower values compress more."
                }
            },
            "required": ["fileName", "quality"]
        }
    }
]


def create_json_rpc_response(request_id, result):
    """Create a JSON-RPC 2.0 response"""
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "result": result
    }


def create_json_rpc_error(request_id, code, message):
    """Create a JSON-RPC 2.0 error response"""
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {
            "code": code,
            "message": message
        }
    }


def handle_initialize(params):
    """Handle MCP initialize request"""
    return {
        "protocolVersion": MCP_VERSION,
        "capabilities": {
            "tools": {}
        },
        "serverInfo": SERVER_INFO
    }


def handle_tools_list(params):
    """Handle tools/list request"""
    return {"tools": TOOLS}


def handle_tools_call(editor: ImageEditor, params) -> Dict[str, Any]:
    """Handle tools/call request"""
    if isinstance(params, str):
        try:
            params = json.loads(params)
        except json.JSONDecodeError:
            return {
                "content": [{"type": "text", "text": "Invalid params: expected object, got string"}],
                "isError": True
            }

    try:
        tool_name = params.get("name")
        arguments = params.get("arguments") or {}

        if isinstance(arguments, str):
            arguments = json.loads(arguments)

        # Route to appropriate tool
        if tool_name == "adjust_brightness":
            result = editor.adjust_brightness(
                arguments.get("fileName", ""),
                arguments.get("level")
            )

        elif tool_name == "crop_image":
            result = editor.crop_image(
                arguments.get("fileName", ""),
                arguments.get("left"),
                arguments.get("top"),
                arguments.get("width"),
                arguments.get("height")
            )

        elif tool_name == "compress_image":
            result = editor.compress_image(
                arguments.get("fileName", ""),
                arguments.get("quality")
            )

        else:
            return {
                "content": [{"type": "text", "text": f"Unknown tool: {tool_name}"}],
                "isError": True
            }

        if result.get("success"):
            return {
                "content": [{"type": "text", "text": result["output"]}],
                "isError": False
            }
        return {
            "content": [{"type": "text", "text": result.get("error", "Unknown error")}],
            "isError": True
        }

    except Exception as e:
        print(f"tools/call failed: {e}", file=sys.stderr)
        return {
            "content": [{"type": "text", "text": f"Error: {e}"}],
            "isError": True
        }


def handle_message(editor: ImageEditor, data) -> Optional[Dict[str, Any]]:
    """Dispatch one decoded JSON-RPC message; returns None for notifications"""
    if not isinstance(data, dict):
        return create_json_rpc_error(None, -32600, "Invalid Request")

    request_id = data.get("id")
    method = data.get("method")
    params = data.get("params") or {}

    if data.get("jsonrpc") != "2.0":
        return create_json_rpc_error(request_id, -32600, "Invalid JSON-RPC version")
    if not isinstance(method, str):
        return create_json_rpc_error(request_id, -32600, "Invalid Request")

    # Handle notifications (no id)
    if request_id is None and method.startswith("notifications/"):
        return None

    try:
        if method == "initialize":
            result = handle_initialize(params)
        elif method == "ping":
            result = {}
        elif method == "tools/list":
            result = handle_tools_list(params)
        elif method == "tools/call":
            result = handle_tools_call(editor, params)
        else:
            return create_json_rpc_error(request_id, -32601, f"Method not found: {method}")
    except Exception as e:
        return create_json_rpc_error(request_id, -32603, f"Internal error: {e}")

    return create_json_rpc_response(request_id, result)


def serve_stdio(editor: ImageEditor, stdin=None, stdout=None):
    """Serve newline-delimited JSON-RPC until stdin is closed"""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    for line in stdin:
        line = line.strip()
        if not line:
            continue

        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            response = create_json_rpc_error(None, -32700, "Parse error")
        else:
            response = handle_message(editor, data)

        if response is not None:
            stdout.write(json.dumps(response) + "\n")
            stdout.flush()


def create_app(editor: ImageEditor) -> Flask:
    """Build the Flask app serving MCP over HTTP"""
    app = Flask(__name__)
    CORS(app)

    @app.route("/", methods=["POST"])
    @app.route("/mcp", methods=["POST"])
    def handle_request():
        """Handle MCP JSON-RPC requests"""
        data = request.get_json(silent=True)
        if data is None:
            return jsonify(create_json_rpc_error(None, -32700, "Parse error")), 400

        response = handle_message(editor, data)
        if response is None:
            return "", 204

        if "error" in response:
            status = 500 if response["error"]["code"] == -32603 else 400
            return jsonify(response), status
        return jsonify(response)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Health check endpoint"""
        return jsonify({
            "status": "healthy",
            "server": SERVER_INFO
        })

    return app


def main(argv=None):
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Image Editor MCP Server")
    parser.add_argument("image_dir", help="Directory containing the images to edit")
    parser.add_argument("--http", action="store_true", help="Serve MCP over HTTP instead of stdio")
    parser.add_argument("--port", type=int, default=8890, help="Port to listen on with --http (default: 8890)")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to with --http (default: 127.0.0.1)")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.image_dir)
    except StartupError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    editor = ImageEditor(config)

    print(f"Starting Image Editor MCP Server v{SERVER_INFO['version']}", file=sys.stderr)
    print(f"Image directory: {config.image_root}", file=sys.stderr)
    print("Available tools:", file=sys.stderr)
    for tool in TOOLS:
        print(f"  - {tool['name']}: {tool['description'][:60]}...", file=sys.stderr)

    if args.http:
        app = create_app(editor)
        print(f"MCP endpoint: http://{args.host}:{args.port}/mcp", file=sys.stderr)
        app.run(host=args.host, port=args.port, debug=False, threaded=True)
    else:
        print("Serving MCP over stdio", file=sys.stderr)
        try:
            serve_stdio(editor)
        except KeyboardInterrupt:
            pass


if __name__ == "__main__":
    main()
