"""envrefresh - force a direnv/nix-direnv cache rebuild and mark it fresh."""
