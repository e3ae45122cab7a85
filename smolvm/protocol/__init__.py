"""Wire framing, messages and data records exchanged with the guest."""