"""sitecms: marketing site server with a registry of injectable third-party apps."""
