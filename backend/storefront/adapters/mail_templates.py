def make_a_nice_email(text: str) -> str:
    return f"""
    <div class="email" style="
      border: 1px solid black;
      padding: 20px;
      font-family: sans-serif;
      line-height: 2;
      font-size: 20px;
    ">
      <h2>Hello There!</h2>
      <p>{text}</p>
    </div>
    """


def reset_email(frontend_url: str, reset_token: str) -> str:
    link = f"{frontend_url.rstrip('/')}/reset?resetToken={reset_token}"
    return make_a_nice_email(
        f'Your Password Reset Link is here!\n\n<a href="{link}">Click here to reset</a>'
    )
