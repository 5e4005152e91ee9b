import logging
import threading

logger = logging.getLogger("wropack")


class AllowList:
    """
    The set of resource ids that may be served through the wroResources endpoint.
    Every id routed through the endpoint by the url rewriter is added here, and the
    endpoint refuses anything that is not a member. Safe to share between threads.
    """

    def __init__(self, uris=None):
        self._lock = threading.Lock()
        self._uris = set(uris or ())

    def __contains__(self, uri):
        return self.contains(uri)

    def __len__(self):
        with self._lock:
            return len(self._uris)

    def __iter__(self):
        # Iterate over a snapshot so concurrent adds don't break the caller.
        with self._lock:
            return iter(sorted(self._uris))

    def __repr__(self):
        return "<AllowList {}>".format(list(self))

    def add(self, uri):
        with self._lock:
            if uri in self._uris:
                return
            self._uris.add(uri)
        logger.debug("Adding allowed url: {}".format(uri))

    def contains(self, uri):
        with self._lock:
            return uri in self._uris

    def clear(self):
        with self._lock:
            self._uris.clear()
