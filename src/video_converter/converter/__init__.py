"""Merge uploaded video chunks and convert them to MPEG-DASH.

One inbound message names a video id and the directory holding its chunks.
The worker checks the processed-video record, concatenates the chunks in
sequence order, runs the external encoder, marks the video processed and
removes the merged file. Every failure is logged and appended to the error
log; retries belong to whoever redelivers the message.
"""
