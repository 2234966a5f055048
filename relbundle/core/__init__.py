"""Resolution and assembly engine: versions indices, storage, locator, compiler."""
