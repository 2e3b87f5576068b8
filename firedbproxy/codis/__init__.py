"""RESP values, encoder and decoder, buffered I/O and concurrency helpers."""