"""Task tracker runtime: domain, storage, services, events and HTTP surface."""
