import click


class ShareFaultSpec(click.ParamType):
    """ISSUER:RECIPIENT pairs naming the share one issuer sends one recipient."""

    name = 'issuer:recipient'

    def convert(self, value, param, ctx):
        if isinstance(value, tuple):
            return value
        try:
            issuer, recipient = (int(part) for part in value.split(':'))
        except ValueError:
            self.fail(f"'{value}' is not of the form ISSUER:RECIPIENT")
        if issuer < 1 or recipient < 1 or issuer == recipient:
            self.fail(f"'{value}' must name two distinct positive participant ids")
        return issuer, recipient


SHARE_FAULT = ShareFaultSpec()
EXISTING_READABLE_FILE = click.Path(exists=True, dir_okay=False, file_okay=True, readable=True)
