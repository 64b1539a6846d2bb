"""Clients for the chain RPC, bundler, paymaster and deBridge APIs."""
