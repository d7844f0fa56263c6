"""
Generate FlatBuffers table and struct bindings from a schema
"""
