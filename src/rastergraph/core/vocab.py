"""RDF type tags attached to file attachments.

The values are opaque to rastergraph; they are compared as plain strings.
"""

PCDM_FILE = "http://pcdm.org/models#File"
PCDM_USE_ORIGINAL_FILE = "http://pcdm.org/use#OriginalFile"
PCDM_USE_THUMBNAIL_IMAGE = "http://pcdm.org/use#ThumbnailImage"
