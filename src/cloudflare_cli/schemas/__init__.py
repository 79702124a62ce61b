"""Package data: the compiled ``command_tree.json`` shipped with cloudflare-cli."""
