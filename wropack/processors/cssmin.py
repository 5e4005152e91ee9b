import rcssmin


def process(text, input, packer, context):
    return rcssmin.cssmin(text)
