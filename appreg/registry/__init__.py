"""Node directory — the admission-controlled list of network node endpoints.

The directory provides:
- Admission: anyone may submit a url; trusted submitters are approved at once
- Review: managers approve pending urls, singly or in lenient batches
- Removal: managers erase urls from whichever list holds them
- Snapshots: the registry handle persists and restores the whole state
"""
