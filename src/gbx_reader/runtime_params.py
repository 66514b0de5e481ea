import os

# node references nested deeper than this fail with NodeDepthError
max_node_depth = int(os.environ.get("GBX_READER_MAX_NODE_DEPTH", "32"))

# 0 disables the check
max_input_size = int(os.environ.get("GBX_READER_MAX_INPUT_SIZE", "0"))

# upper bound for the uncompressed body size announced by a file
max_body_size = int(os.environ.get("GBX_READER_MAX_BODY_SIZE", str(256 * 1024 * 1024)))
