"""Analysis boundary: calls to the generative-AI backend."""
